"""litescript -> JavaScript as an ordered list of whole-text rewrite stages.

Each stage is an object with a ``name`` and ``run(text) -> text``. Stages keep
no state between calls, so a pipeline can be reused freely.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol, Tuple

from .passes.blocks import ControlBlockNormalizer, FunctionHeaderExpander
from .passes.log import LogCallExpander
from .passes.loops import LoopSugarExpander
from .passes.sugar import ExpressionSugarExpander
from .passes.variables import DeclarationInferencer

logger = logging.getLogger(__name__)


class Stage(Protocol):
    name: str

    def run(self, source: str) -> str: ...


DEFAULT_STAGES: Tuple[Stage, ...] = (
    DeclarationInferencer(),
    FunctionHeaderExpander(),
    ControlBlockNormalizer(),
    ExpressionSugarExpander(),
    LogCallExpander(),
)


class Pipeline:
    def __init__(self, stages: Iterable[Stage] = DEFAULT_STAGES):
        self.stages = tuple(stages)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)

    def run(self, source: str) -> str:
        text = source
        for stage in self.stages:
            before = len(text)
            text = stage.run(text)
            logger.debug("stage %s: %d -> %d chars", stage.name, before, len(text))
        return text


def build_stages(loops: bool = False, max_passes: Optional[int] = None) -> Tuple[Stage, ...]:
    """The default stage list, optionally with loop sugar and a sugar pass budget."""
    stages = list(DEFAULT_STAGES)

    if max_passes is not None:
        idx = [stage.name for stage in stages].index(ExpressionSugarExpander.name)
        stages[idx] = ExpressionSugarExpander(max_passes=max_passes)

    if loops:
        idx = [stage.name for stage in stages].index(DeclarationInferencer.name)
        stages.insert(idx + 1, LoopSugarExpander())

    return tuple(stages)


def transpile(source: str, *, loops: bool = False, max_passes: Optional[int] = None) -> str:
    return Pipeline(build_stages(loops=loops, max_passes=max_passes)).run(source)
