from __future__ import annotations

import dataclasses
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from javagadgets.engine.fixes import Fix
from javagadgets.engine.semantics import Oracle
from javagadgets.engine.tree import NodeKind, NodeRef, SyntaxTree
from javagadgets.engine.types import RuleGroupName, Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OptionSpec:
    name: str
    label_key: str
    default: bool = False


@dataclass(frozen=True, slots=True)
class RuleMeta:
    rule_id: str
    short_name: str  # name accepted by `//noinspection`
    title: str
    description: str
    group: RuleGroupName
    default_severity: Severity
    display_name_key: str
    enabled_by_default: bool = False
    options: tuple[OptionSpec, ...] = ()


@dataclass(frozen=True, slots=True)
class NoOptions:
    pass


@dataclass(frozen=True, slots=True)
class InspectionContext:
    """What a handler may look at: the tree, the oracle, and its rule's options."""

    tree: SyntaxTree
    oracle: Oracle
    options: Any = field(default_factory=NoOptions)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    One flagged node.

    The fix is built on demand by `fix()`; it targets the tree version the
    diagnostic was produced from and goes stale once any fix is applied.
    """

    rule_id: str
    node: NodeRef
    message_key: str
    fix_factory: Callable[[], Fix | None] | None = field(default=None, compare=False, repr=False)

    @property
    def has_fix(self) -> bool:
        return self.fix_factory is not None

    def fix(self) -> Fix | None:
        return self.fix_factory() if self.fix_factory is not None else None


Handler = Callable[[InspectionContext, NodeRef], Iterable[Diagnostic]]


class BaseRule(ABC):
    meta: RuleMeta
    options_type: type[Any] = NoOptions

    @abstractmethod
    def handlers(self) -> Mapping[NodeKind, Handler]:
        """Node kinds this rule inspects, each with its handler."""

    def build_options(self, values: Mapping[str, bool] | None = None) -> Any:
        """Turn a configured option table into this rule's immutable options."""

        known = {f.name for f in dataclasses.fields(self.options_type)}
        kwargs: dict[str, bool] = {}
        for name, value in (values or {}).items():
            if name not in known:
                logger.warning("unknown option for %s: %s", self.meta.rule_id, name)
                continue
            kwargs[name] = bool(value)
        return self.options_type(**kwargs)

    def _diagnostic(
        self,
        node: NodeRef,
        message_key: str,
        fix: Callable[[], Fix | None] | None = None,
    ) -> Diagnostic:
        return Diagnostic(rule_id=self.meta.rule_id, node=node, message_key=message_key, fix_factory=fix)
