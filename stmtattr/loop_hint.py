"""stmtattr/loop_hint.py – Loop-hint argument parsing and compatibility checks.

A loop hint reaches this module as a raw attribute with three positional
argument slots::

    (option identifier, value identifier or missing, value expression or missing)

``parse_loop_hint_args`` turns one raw hint into a ``LoopHintAttr``.
``check_for_incompatible_attributes`` then looks at *all* hints attached to
one statement.  It must run after every hint of the statement has been
parsed, since a later hint may conflict with an earlier one.

There are three categories of loop hints: vectorize, interleave and
unroll.  Each comes in an enable/disable form and a numeric form, e.g.
``unroll(enable|disable)`` and ``unroll_count(N)``.  Within a category a
form may not be given twice, and ``disable`` contradicts any numeric form.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from stmtattr.ast import evaluate_integer_constant, is_value_dependent
from stmtattr.attributes import (
    CATEGORY_OPTIONS,
    DEFAULT_LOOP_HINT_OPTION,
    LOOP_HINT_OPTIONS,
    Attr,
    HintCategory,
    IdentifierLoc,
    LoopHintAttr,
    LoopHintOption,
    OptionClass,
    RawAttribute,
    value_name,
)
from stmtattr.errors import Diags, DiagnosticsEngine, InternalError

logger = logging.getLogger(__name__)


# ============================================================================
# PART 1 — ARGUMENT PARSING
# ============================================================================


def parse_loop_hint_args(
    attr: RawAttribute,
    diags: DiagnosticsEngine,
    *,
    strict_options: bool = False,
) -> Optional[LoopHintAttr]:
    """
    Parse the arguments of one loop-hint attribute.

    Returns the typed attribute, or ``None`` after reporting why the
    arguments are invalid.  An option name outside the table is treated as
    ``vectorize`` unless *strict_options* is set.
    """
    option_loc = attr.arg_as_ident(0)
    if option_loc is None or option_loc.ident is None:
        raise InternalError("loop hint attribute must carry an option identifier")
    value_loc = attr.arg_as_ident(1) or IdentifierLoc(option_loc.loc)
    value_expr = attr.arg_as_expr(2)

    option = LOOP_HINT_OPTIONS.get(option_loc.ident)
    if option is None:
        if strict_options:
            diags.report(
                Diags.ERR_PRAGMA_LOOP_INVALID_OPTION, option_loc.loc, option_loc.ident
            )
            return None
        logger.debug(
            "unrecognized loop hint option %r at %s treated as %s",
            option_loc.ident, option_loc.loc, DEFAULT_LOOP_HINT_OPTION.spelling,
        )
        option = DEFAULT_LOOP_HINT_OPTION

    if option.option_class is OptionClass.BOOLEAN:
        if value_loc.ident == "disable":
            value = 0
        elif value_loc.ident == "enable":
            value = 1
        else:
            diags.report(Diags.ERR_PRAGMA_LOOP_INVALID_KEYWORD, value_loc.loc)
            return None
    elif option.option_class is OptionClass.NUMERIC:
        # Template-parameter values are not supported and fold to None.
        if is_value_dependent(value_expr):
            logger.debug("value-dependent loop hint value at %s", value_loc.loc)
        folded = evaluate_integer_constant(value_expr)
        if folded is None or folded < 1:
            diags.report(Diags.ERR_PRAGMA_LOOP_INVALID_VALUE, value_loc.loc)
            return None
        value = folded
    else:
        raise InternalError(f"unknown loop hint option class {option.option_class!r}")

    return LoopHintAttr(option=option, value=value, source_range=attr.source_range)


# ============================================================================
# PART 2 — COMPATIBILITY CHECKING
# ============================================================================


@dataclass
class CategoryState:
    """Loop hints seen so far for one category on one statement."""

    category: HintCategory
    enable_option: LoopHintOption
    numeric_option: LoopHintOption
    enabled_is_set: bool = False
    value_is_set: bool = False
    enabled: bool = False
    value: int = 0

    @property
    def is_disabled(self) -> bool:
        return self.enabled_is_set and not self.enabled


def check_for_incompatible_attributes(
    attrs: Iterable[Attr], diags: DiagnosticsEngine
) -> Dict[HintCategory, CategoryState]:
    """
    Check the loop hints among *attrs* for duplicates and contradictions.

    Scans once, in source order.  Every problem is reported and the scan
    continues; a repeated form overwrites the recorded value.  Nothing is
    removed from *attrs*.  Returns the final per-category state.
    """
    states = {
        category: CategoryState(category, *CATEGORY_OPTIONS[category])
        for category in HintCategory
    }

    for attr in attrs:
        # Skip non loop hint attributes
        if not isinstance(attr, LoopHintAttr):
            continue

        option = attr.option
        state = states[attr.category]
        loc = attr.source_range.end

        if option.option_class is OptionClass.BOOLEAN:
            # Enable|disable hint, e.g. vectorize(enable).
            if state.enabled_is_set:
                diags.report(
                    Diags.ERR_PRAGMA_LOOP_COMPATIBILITY, loc,
                    True, option.spelling, value_name(state.enabled),
                    option.spelling, value_name(attr.value),
                )
            state.enabled_is_set = True
            state.enabled = bool(attr.value)
        elif option.option_class is OptionClass.NUMERIC:
            # Numeric hint, e.g. unroll_count(8).
            if state.value_is_set:
                diags.report(
                    Diags.ERR_PRAGMA_LOOP_COMPATIBILITY, loc,
                    True, option.spelling, state.value,
                    option.spelling, attr.value,
                )
            state.value_is_set = True
            state.value = attr.value
        else:
            raise InternalError(f"unknown loop hint option class {option.option_class!r}")

        if state.is_disabled and state.value_is_set:
            diags.report(
                Diags.ERR_PRAGMA_LOOP_COMPATIBILITY, loc,
                False, state.enable_option.spelling, value_name(state.enabled),
                state.numeric_option.spelling, state.value,
            )

    return states
