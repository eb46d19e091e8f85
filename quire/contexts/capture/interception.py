"""
Scoped stylesheet interception.

Some rasterizers re-insert every stylesheet rule while cloning a document and
fail on at-rules that are not allowed there (notably @charset). Rather than
patching the stylesheet API for the whole process, an interceptor is handed to
a single rasterizer call and installed only for its duration.

Targets are any object with an awaitable `evaluate(expression, arg=None)`,
such as a Playwright Page.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Tuple

INSTALL_AT_RULE_FILTER_JS = """
(blocked) => {
    const proto = CSSStyleSheet.prototype;
    if (proto.__quireInsertRule) {
        return;
    }
    const original = proto.insertRule;
    proto.__quireInsertRule = original;
    proto.insertRule = function (rule, index) {
        const text = (rule || '').trim().toLowerCase();
        if (blocked.some((prefix) => text.startsWith(prefix))) {
            return 0;
        }
        return original.call(this, rule, index);
    };
}
"""

RESTORE_AT_RULE_FILTER_JS = """
() => {
    const proto = CSSStyleSheet.prototype;
    if (proto.__quireInsertRule) {
        proto.insertRule = proto.__quireInsertRule;
        delete proto.__quireInsertRule;
    }
}
"""


class StylesheetInterceptor(ABC):
    """Interception installed on a rendering target for one scoped operation."""

    @abstractmethod
    async def install(self, target: Any) -> None:
        """Start intercepting on `target`."""

    @abstractmethod
    async def restore(self, target: Any) -> None:
        """Stop intercepting and restore the target's original behavior."""

    @asynccontextmanager
    async def scoped(self, target: Any) -> AsyncIterator["StylesheetInterceptor"]:
        """Install for the duration of the block; always restored on exit."""
        await self.install(target)
        try:
            yield self
        finally:
            await self.restore(target)


@dataclass(frozen=True)
class AtRuleFilter(StylesheetInterceptor):
    """
    Silently drops stylesheet rules starting with a blocked at-rule.

    Attributes:
        blocked: At-rule prefixes to drop, matched case-insensitively against
                 the trimmed rule text inside the page
    """

    blocked: Tuple[str, ...] = ("@charset",)

    async def install(self, target: Any) -> None:
        await target.evaluate(INSTALL_AT_RULE_FILTER_JS, [p.lower() for p in self.blocked])

    async def restore(self, target: Any) -> None:
        await target.evaluate(RESTORE_AT_RULE_FILTER_JS)
