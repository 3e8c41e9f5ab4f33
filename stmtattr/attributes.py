"""stmtattr/attributes.py – Attribute kind registry and attribute values.

Two worlds meet here:

* **Raw attributes** (``RawAttribute``) are what the front end hands over:
  a name, the syntax it was spelled with, a source range and an ordered
  argument list.  Their ``kind`` is resolved once, against the closed
  registry of known spellings.
* **Validated attributes** (``FallThroughAttr``, ``LoopHintAttr``) are
  what survives statement-attribute processing and gets attached to the
  tree.

The loop-hint option table is data, not code: each of the six option
names maps to a ``(category, option class)`` pair, and every category has
exactly one boolean and one numeric option.  That invariant is checked
when this module is imported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import ClassVar, Dict, Mapping, Optional, Tuple, Union

from stmtattr.ast import EXPR_TYPES, NO_RANGE, Expr, SourceLoc, SourceRange
from stmtattr.errors import InternalError

# ════════════════════════════════════════════════════════════════════════
# §1  Attribute kind registry
# ════════════════════════════════════════════════════════════════════════


class AttributeSyntax(Enum):
    """How an attribute was spelled in the source."""

    CXX11 = "cxx11"          # [[name]] / [[ns::name]]
    GNU = "gnu"              # __attribute__((name))
    DECLSPEC = "declspec"    # __declspec(name)
    PRAGMA = "pragma"        # #pragma clang loop ...


class AttributeKind(Enum):
    """Closed set of attribute kinds known to the front end."""

    UNKNOWN = auto()

    # Statement attributes
    FALLTHROUGH = auto()
    LOOP_HINT = auto()

    # Declaration-only attributes
    ALIGNED = auto()
    CARRIES_DEPENDENCY = auto()
    DEPRECATED = auto()
    MAYBE_UNUSED = auto()
    NODISCARD = auto()
    NORETURN = auto()
    PACKED = auto()
    UNUSED = auto()
    VISIBILITY = auto()
    WEAK = auto()

    @property
    def is_statement_attribute(self) -> bool:
        return self in STATEMENT_ATTRIBUTE_KINDS


STATEMENT_ATTRIBUTE_KINDS = frozenset(
    {AttributeKind.FALLTHROUGH, AttributeKind.LOOP_HINT}
)

_SPELLINGS: Tuple[Tuple[AttributeKind, AttributeSyntax, str], ...] = (
    (AttributeKind.FALLTHROUGH, AttributeSyntax.CXX11, "fallthrough"),
    (AttributeKind.FALLTHROUGH, AttributeSyntax.CXX11, "clang::fallthrough"),
    (AttributeKind.LOOP_HINT, AttributeSyntax.PRAGMA, "loop"),
    (AttributeKind.ALIGNED, AttributeSyntax.GNU, "aligned"),
    (AttributeKind.ALIGNED, AttributeSyntax.CXX11, "gnu::aligned"),
    (AttributeKind.ALIGNED, AttributeSyntax.DECLSPEC, "align"),
    (AttributeKind.CARRIES_DEPENDENCY, AttributeSyntax.CXX11, "carries_dependency"),
    (AttributeKind.DEPRECATED, AttributeSyntax.CXX11, "deprecated"),
    (AttributeKind.DEPRECATED, AttributeSyntax.CXX11, "gnu::deprecated"),
    (AttributeKind.DEPRECATED, AttributeSyntax.GNU, "deprecated"),
    (AttributeKind.DEPRECATED, AttributeSyntax.DECLSPEC, "deprecated"),
    (AttributeKind.MAYBE_UNUSED, AttributeSyntax.CXX11, "maybe_unused"),
    (AttributeKind.NODISCARD, AttributeSyntax.CXX11, "nodiscard"),
    (AttributeKind.NORETURN, AttributeSyntax.CXX11, "noreturn"),
    (AttributeKind.NORETURN, AttributeSyntax.GNU, "noreturn"),
    (AttributeKind.NORETURN, AttributeSyntax.DECLSPEC, "noreturn"),
    (AttributeKind.PACKED, AttributeSyntax.GNU, "packed"),
    (AttributeKind.PACKED, AttributeSyntax.CXX11, "gnu::packed"),
    (AttributeKind.UNUSED, AttributeSyntax.GNU, "unused"),
    (AttributeKind.UNUSED, AttributeSyntax.CXX11, "gnu::unused"),
    (AttributeKind.VISIBILITY, AttributeSyntax.GNU, "visibility"),
    (AttributeKind.WEAK, AttributeSyntax.GNU, "weak"),
)

#: (syntax, qualified name) -> kind
ATTRIBUTE_REGISTRY: Mapping[Tuple[AttributeSyntax, str], AttributeKind] = MappingProxyType(
    {(syntax, name): kind for kind, syntax, name in _SPELLINGS}
)


def normalize_attribute_name(name: str) -> str:
    """Strip the reserved ``__name__`` form GNU spellings allow."""
    if len(name) > 4 and name.startswith("__") and name.endswith("__"):
        return name[2:-2]
    return name


def lookup_attribute_kind(
    name: str, syntax: AttributeSyntax, scope: Optional[str] = None
) -> AttributeKind:
    """Resolve a spelled attribute to its kind (``UNKNOWN`` if not registered)."""
    name = normalize_attribute_name(name)
    qualified = f"{scope}::{name}" if scope else name
    return ATTRIBUTE_REGISTRY.get((syntax, qualified), AttributeKind.UNKNOWN)


# ════════════════════════════════════════════════════════════════════════
# §2  Raw (parsed, unvalidated) attributes
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class IdentifierLoc:
    """An identifier argument and its location; ``ident`` may be missing."""

    loc: SourceLoc
    ident: Optional[str] = None


AttributeArg = Union[IdentifierLoc, Expr, None]


@dataclass(frozen=True, slots=True)
class RawAttribute:
    """An attribute as parsed, before statement-attribute validation.

    ``args`` keeps positional slots: a slot may hold an ``IdentifierLoc``,
    an expression, or ``None`` for an absent argument.
    """

    name: str
    kind: AttributeKind
    syntax: AttributeSyntax
    source_range: SourceRange = NO_RANGE
    args: Tuple[AttributeArg, ...] = ()
    scope: Optional[str] = None

    @classmethod
    def create(
        cls,
        name: str,
        syntax: AttributeSyntax,
        source_range: SourceRange = NO_RANGE,
        args: Tuple[AttributeArg, ...] = (),
        scope: Optional[str] = None,
    ) -> "RawAttribute":
        """Build a raw attribute, resolving its kind from the registry."""
        return cls(
            name=name,
            kind=lookup_attribute_kind(name, syntax, scope),
            syntax=syntax,
            source_range=source_range,
            args=args,
            scope=scope,
        )

    @property
    def loc(self) -> SourceLoc:
        return self.source_range.begin

    @property
    def qualified_name(self) -> str:
        return f"{self.scope}::{self.name}" if self.scope else self.name

    @property
    def is_declspec(self) -> bool:
        return self.syntax is AttributeSyntax.DECLSPEC

    def arg_as_ident(self, index: int) -> Optional[IdentifierLoc]:
        if index < len(self.args) and isinstance(self.args[index], IdentifierLoc):
            return self.args[index]
        return None

    def arg_as_expr(self, index: int) -> Optional[Expr]:
        if index < len(self.args) and isinstance(self.args[index], EXPR_TYPES):
            return self.args[index]
        return None


# ════════════════════════════════════════════════════════════════════════
# §3  Loop-hint option table
# ════════════════════════════════════════════════════════════════════════


class HintCategory(Enum):
    VECTORIZE = auto()
    INTERLEAVE = auto()
    UNROLL = auto()


class OptionClass(Enum):
    BOOLEAN = auto()   # takes enable / disable
    NUMERIC = auto()   # takes a positive integer constant


class HintMode(Enum):
    ENABLE = auto()
    DISABLE = auto()
    NUMERIC = auto()


class LoopHintOption(Enum):
    """Loop-hint options, valued by their spelling."""

    VECTORIZE = "vectorize"
    VECTORIZE_WIDTH = "vectorize_width"
    INTERLEAVE = "interleave"
    INTERLEAVE_COUNT = "interleave_count"
    UNROLL = "unroll"
    UNROLL_COUNT = "unroll_count"

    @property
    def spelling(self) -> str:
        return self.value

    @property
    def category(self) -> HintCategory:
        return _OPTION_INFO[self][0]

    @property
    def option_class(self) -> OptionClass:
        return _OPTION_INFO[self][1]


_OPTION_INFO: Mapping[LoopHintOption, Tuple[HintCategory, OptionClass]] = MappingProxyType({
    LoopHintOption.VECTORIZE: (HintCategory.VECTORIZE, OptionClass.BOOLEAN),
    LoopHintOption.VECTORIZE_WIDTH: (HintCategory.VECTORIZE, OptionClass.NUMERIC),
    LoopHintOption.INTERLEAVE: (HintCategory.INTERLEAVE, OptionClass.BOOLEAN),
    LoopHintOption.INTERLEAVE_COUNT: (HintCategory.INTERLEAVE, OptionClass.NUMERIC),
    LoopHintOption.UNROLL: (HintCategory.UNROLL, OptionClass.BOOLEAN),
    LoopHintOption.UNROLL_COUNT: (HintCategory.UNROLL, OptionClass.NUMERIC),
})

#: option name -> option
LOOP_HINT_OPTIONS: Mapping[str, LoopHintOption] = MappingProxyType(
    {option.spelling: option for option in LoopHintOption}
)

#: Used for option names missing from ``LOOP_HINT_OPTIONS``.
DEFAULT_LOOP_HINT_OPTION = LoopHintOption.VECTORIZE


def category_options(category: HintCategory) -> Tuple[LoopHintOption, LoopHintOption]:
    """Return the ``(boolean, numeric)`` option pair of *category*."""
    boolean = [o for o in LoopHintOption
               if o.category is category and o.option_class is OptionClass.BOOLEAN]
    numeric = [o for o in LoopHintOption
               if o.category is category and o.option_class is OptionClass.NUMERIC]
    if len(boolean) != 1 or len(numeric) != 1:
        raise InternalError(
            f"loop hint category {category.name} needs exactly one boolean and "
            f"one numeric option, found {len(boolean)} and {len(numeric)}"
        )
    return boolean[0], numeric[0]


def _verify_option_table() -> Dict[HintCategory, Tuple[LoopHintOption, LoopHintOption]]:
    return {category: category_options(category) for category in HintCategory}


CATEGORY_OPTIONS = MappingProxyType(_verify_option_table())


def value_name(value: Union[int, bool]) -> str:
    """Display name of a boolean loop-hint value."""
    return "enable" if value else "disable"


# ════════════════════════════════════════════════════════════════════════
# §4  Validated attributes
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class FallThroughAttr:
    """Marks an empty statement as an intentional switch fallthrough."""

    kind: ClassVar[AttributeKind] = AttributeKind.FALLTHROUGH
    source_range: SourceRange = field(default=NO_RANGE, repr=False)

    def pretty(self) -> str:
        return "[[fallthrough]]"


@dataclass(frozen=True, slots=True)
class LoopHintAttr:
    """A validated loop-hint directive.

    ``value`` is the positive count for numeric options and 1/0 for
    enable/disable.
    """

    kind: ClassVar[AttributeKind] = AttributeKind.LOOP_HINT
    option: LoopHintOption
    value: int
    source_range: SourceRange = field(default=NO_RANGE, repr=False)

    @property
    def category(self) -> HintCategory:
        return self.option.category

    @property
    def mode(self) -> HintMode:
        if self.option.option_class is OptionClass.NUMERIC:
            return HintMode.NUMERIC
        return HintMode.ENABLE if self.value else HintMode.DISABLE

    def value_text(self) -> str:
        if self.mode is HintMode.NUMERIC:
            return str(self.value)
        return value_name(self.value)

    def pretty(self) -> str:
        return f"#pragma clang loop {self.option.spelling}({self.value_text()})"


Attr = Union[FallThroughAttr, LoopHintAttr]
