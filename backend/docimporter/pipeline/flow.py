"""
Flow — the ordered, optionally conditional, chain of handlers of a phase.

A flow is declared as a list whose items are handlers or conditional blocks::

    pre_parse = [
        ReferenceFilter(r".*\\.tmp", on_match=OnMatch.EXCLUDE),
        If(MetadataCondition(DocField.CONTENT_TYPE, "text/.*"),
           then=[ReplaceTransformer(r"\\s+", " ")],
           otherwise=[ConstantTagger("binary", ["true"])]),
        PageSplitter(),
    ]

compile_flow() resolves every handler's capability role once, so an
unsupported handler is reported when the importer is configured rather than
when the first document goes through.  Flow.execute() runs the chain and
returns the phase status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Iterator

from docimporter.core.constants import EventName
from docimporter.core.logging import get_logger
from docimporter.pipeline.consumer import HandlerConsumer
from docimporter.pipeline.context import HandlerContext
from docimporter.pipeline.errors import ConfigurationError, HandlerError
from docimporter.pipeline.handler import Condition
from docimporter.response import ImporterStatus

logger = get_logger(__name__)


@dataclass
class If:
    """Run *then* when *condition* matches the document metadata, else *otherwise*."""

    condition: Condition
    then: list[Any] = field(default_factory=list)
    otherwise: list[Any] = field(default_factory=list)

    negate: ClassVar[bool] = False


@dataclass
class IfNot(If):
    """Run *then* when *condition* does NOT match."""

    negate: ClassVar[bool] = True


class _Branch:
    """Compiled If/IfNot block."""

    def __init__(self, block: If) -> None:
        if block.condition is None or not callable(getattr(block.condition, "matches", None)):
            raise ConfigurationError(f"Invalid flow condition: {block.condition!r}")
        self.block = block
        self.then = compile_flow(block.then)
        self.otherwise = compile_flow(block.otherwise)

    def accept(self, ctx: HandlerContext) -> None:
        if ctx.is_rejected:
            return
        condition = self.block.condition
        try:
            matched = bool(condition.matches(ctx.doc.metadata))
        except Exception as exc:
            ctx.fire(EventName.HANDLER_ERROR, condition, exc)
            raise HandlerError(
                f"Importer failure for flow condition {condition!r} "
                f"on document \"{ctx.doc.reference}\": {exc}",
                reference=ctx.doc.reference,
                handler=condition,
            ) from exc
        if self.block.negate:
            matched = not matched
        (self.then if matched else self.otherwise).accept(ctx)

    def handlers(self) -> Iterator[Any]:
        yield from self.then.handlers()
        yield from self.otherwise.handlers()


class Flow:
    """A compiled chain of handler consumers and conditional branches."""

    def __init__(self, nodes: list[HandlerConsumer | _Branch] | None = None) -> None:
        self.nodes = list(nodes or [])

    def __len__(self) -> int:
        return len(self.nodes)

    def accept(self, ctx: HandlerContext) -> None:
        for node in self.nodes:
            if ctx.is_rejected:
                logger.debug(
                    "Skipping remaining handlers of rejected document",
                    reference=ctx.doc.reference,
                    parse_state=str(ctx.parse_state),
                )
                return
            node.accept(ctx)

    def execute(self, ctx: HandlerContext) -> ImporterStatus:
        """Run the whole chain and return the resulting phase status."""
        self.accept(ctx)
        return ctx.final_status()

    def handlers(self) -> Iterator[Any]:
        """Every handler of the flow, branches included, in declaration order."""
        for node in self.nodes:
            if isinstance(node, HandlerConsumer):
                yield node.handler
            else:
                yield from node.handlers()


def compile_flow(items: Flow | Iterable[Any] | None) -> Flow:
    """Turn a declared list of handlers and If/IfNot blocks into a Flow."""
    if items is None:
        return Flow()
    if isinstance(items, Flow):
        return items
    nodes: list[HandlerConsumer | _Branch] = []
    for item in items:
        if isinstance(item, If):
            nodes.append(_Branch(item))
        elif isinstance(item, Flow):
            nodes.extend(item.nodes)
        else:
            nodes.append(HandlerConsumer(item))
    return Flow(nodes)
