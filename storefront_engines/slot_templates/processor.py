"""Handlebars-style template processing for slot content, classes and styles.

Passes always run in this order: ``{{#each}}`` loops, ``{{#if}}``/``{{#unless}}``
conditionals, ``{{t "key"}}`` translations, then plain ``{{path}}``
substitution. A conditional inside a loop therefore sees the loop item.

Nothing in here raises on bad markup: unmatched or unknown blocks are left in
the output verbatim, missing variables render as empty strings.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from storefront_engines.config import runtime_config
from storefront_engines.slot_templates.resolver import format_value, resolve

logger = logging.getLogger(__name__)

# Substituted values are guarded so later passes never read them as markup.
_BRACE_GUARD = "\ue000"

_TAG = re.compile(r"\{\{\s*(#each|#if|#unless|/each|/if|/unless|else)\b\s*(.*?)\s*\}\}", re.S)
_TRANSLATION = re.compile(r"\{\{\s*t\s+(['\"])(.+?)\1\s*\}\}")
_RAW_VARIABLE = re.compile(r"\{\{\{\s*([^{}#/][^{}]*?)\s*\}\}\}")
_VARIABLE = re.compile(r"\{\{\s*([^{}#/][^{}]*?)\s*\}\}")
_VALID_PATH = re.compile(r"[@\w$-]+(\[\d+\])?(\.\[?[@\w$-]+\]?)*")
_HELPER = re.compile(r"^\(\s*(eq|ne|gt|lt|gte|lte)\s+(.+?)\s*\)$", re.S)
_INFIX = re.compile(r"^(.+?)\s*(==|!=|>=|<=|>|<)\s*(.+)$", re.S)
_OPERAND = re.compile(r"\"[^\"]*\"|'[^']*'|\S+")
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")

_CONDITIONAL_OPENERS = ("#if", "#unless")
_CONDITIONAL_CLOSERS = ("/if", "/unless")


@dataclass
class _Block:
    kind: str
    expr: str
    start: int
    body_start: int
    else_start: Optional[int] = None
    else_end: Optional[int] = None
    close_start: Optional[int] = None
    end: Optional[int] = None

    @property
    def matched(self) -> bool:
        return self.close_start is not None


def _find_block(markup: str, pos: int, openers: Tuple[str, ...], closers: Tuple[str, ...]) -> Optional[_Block]:
    """Locate the first block opened at or after ``pos`` with nesting-aware matching."""
    block: Optional[_Block] = None
    depth = 0
    for match in _TAG.finditer(markup, pos):
        tag, expr = match.group(1), match.group(2)
        if block is None:
            if tag in openers:
                block = _Block(kind=tag, expr=expr, start=match.start(), body_start=match.end())
                depth = 1
            continue
        if tag in openers:
            depth += 1
        elif tag in closers:
            depth -= 1
            if depth == 0:
                if tag[1:] != block.kind[1:]:
                    # mismatched closer, the opener stays unmatched
                    return block
                block.close_start = match.start()
                block.end = match.end()
                return block
        elif tag == "else" and not expr and depth == 1 and block.else_start is None:
            block.else_start = match.start()
            block.else_end = match.end()
    return block


def _literal(token: str) -> Tuple[bool, Any]:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return True, token[1:-1]
    if token == "true":
        return True, True
    if token == "false":
        return True, False
    if token in ("null", "undefined"):
        return True, None
    if _NUMBER.match(token):
        return True, float(token) if "." in token else int(token)
    return False, None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and _NUMBER.match(value.strip()):
        return float(value)
    return None


def _compare(op: str, left: Any, right: Any) -> bool:
    left_num, right_num = _as_number(left), _as_number(right)
    if left_num is not None and right_num is not None:
        left, right = left_num, right_num
    if op in ("eq", "=="):
        return left == right
    if op in ("ne", "!="):
        return left != right
    if left is None or right is None:
        return False
    if type(left) is not type(right):
        return False
    if op in ("gt", ">"):
        return left > right
    if op in ("lt", "<"):
        return left < right
    if op in ("gte", ">="):
        return left >= right
    if op in ("lte", "<="):
        return left <= right
    return False


def humanize_key(key: str) -> str:
    leaf = key.split(".")[-1]
    return " ".join(word.capitalize() for word in leaf.replace("_", " ").split())


class TemplateProcessor:
    """Expands loops, conditionals, translations and variables in order."""

    def __init__(self, max_loop_depth: Optional[int] = None) -> None:
        self.max_loop_depth = max_loop_depth or runtime_config.get_max_loop_depth()

    def process(self, markup: Any, context: Optional[Mapping[str, Any]] = None) -> Any:
        """Resolve every placeholder in ``markup`` against ``context``.

        Non-string input is returned unchanged so callers can pass style values
        of any type straight through.
        """
        if not isinstance(markup, str):
            return markup
        if "{{" not in markup:
            return markup
        if not isinstance(context, Mapping):
            context = {}
        result = self._process(markup, context, 0)
        return result.replace(_BRACE_GUARD, "{")

    def _process(self, markup: str, context: Mapping[str, Any], depth: int) -> str:
        result = self._expand_loops(markup, context, depth)
        result = self._expand_conditionals(result, context)
        result = self._expand_translations(result, context)
        return self._substitute(result, context)

    # -- loops --

    def _expand_loops(self, markup: str, context: Mapping[str, Any], depth: int) -> str:
        out: List[str] = []
        pos = 0
        while True:
            block = _find_block(markup, pos, ("#each",), ("/each",))
            if block is None:
                out.append(markup[pos:])
                break
            if not block.matched or not block.expr:
                logger.debug("MalformedTemplate: each block at %s left verbatim", block.start)
                out.append(markup[pos:block.body_start])
                pos = block.body_start
                continue
            out.append(markup[pos:block.start])
            body = markup[block.body_start:block.close_start]
            if depth >= self.max_loop_depth:
                logger.warning("each nesting deeper than %s, block left verbatim", self.max_loop_depth)
                out.append(markup[block.start:block.end])
            else:
                out.append(self._render_each(block.expr, body, context, depth))
            pos = block.end
        return "".join(out)

    def _render_each(self, path: str, body: str, context: Mapping[str, Any], depth: int) -> str:
        collection = resolve(path, context)
        if isinstance(collection, Mapping):
            entries = list(collection.items())
        elif isinstance(collection, (list, tuple)):
            entries = list(enumerate(collection))
        else:
            return ""

        parts: List[str] = []
        for index, (key, item) in enumerate(entries):
            scope = dict(context)
            if isinstance(item, Mapping):
                scope.update(item)
            scope["this"] = item
            scope["@index"] = index
            scope["@key"] = key
            parts.append(self._process(body, scope, depth + 1))
        return "".join(parts)

    # -- conditionals --

    def _expand_conditionals(self, markup: str, context: Mapping[str, Any]) -> str:
        out: List[str] = []
        pos = 0
        while True:
            block = _find_block(markup, pos, _CONDITIONAL_OPENERS, _CONDITIONAL_CLOSERS)
            if block is None:
                out.append(markup[pos:])
                break
            if not block.matched or not block.expr:
                logger.debug("MalformedTemplate: %s block at %s left verbatim", block.kind, block.start)
                out.append(markup[pos:block.body_start])
                pos = block.body_start
                continue
            out.append(markup[pos:block.start])
            if block.else_start is not None:
                truthy = markup[block.body_start:block.else_start]
                falsy = markup[block.else_end:block.close_start]
            else:
                truthy = markup[block.body_start:block.close_start]
                falsy = ""
            outcome = self.evaluate(block.expr, context)
            if block.kind == "#unless":
                outcome = not outcome
            out.append(self._expand_conditionals(truthy if outcome else falsy, context))
            pos = block.end
        return "".join(out)

    def evaluate(self, expr: str, context: Mapping[str, Any]) -> bool:
        """Evaluate an ``{{#if}}`` expression; errors evaluate to False."""
        try:
            expr = expr.strip()
            helper = _HELPER.match(expr)
            if helper:
                name, args = helper.groups()
                operands = _OPERAND.findall(args)
                if len(operands) != 2:
                    return False
                left, right = (self._operand(token, context) for token in operands)
                return _compare(name, left, right)

            infix = _INFIX.match(expr)
            if infix:
                left, op, right = infix.groups()
                return _compare(op, self._operand(left.strip(), context), self._operand(right.strip(), context))

            return bool(self._operand(expr, context))
        except (TypeError, ValueError) as exc:
            logger.debug("condition %r failed to evaluate: %s", expr, exc)
            return False

    def _operand(self, token: str, context: Mapping[str, Any]) -> Any:
        is_literal, value = _literal(token)
        if is_literal:
            return value
        return resolve(token, context)

    # -- translations --

    def _expand_translations(self, markup: str, context: Mapping[str, Any]) -> str:
        if "{{" not in markup:
            return markup
        settings = context.get("settings") if isinstance(context.get("settings"), Mapping) else {}
        translations = settings.get("ui_translations")
        if not isinstance(translations, Mapping):
            translations = {}
        language = context.get("current_language") or settings.get("language")
        if not isinstance(language, str) or not language:
            language = "en"

        def _translate(match: re.Match) -> str:
            key = match.group(2)
            for lang in (language, "en"):
                table = translations.get(lang)
                if not isinstance(table, Mapping):
                    continue
                value = resolve(key, table)
                if isinstance(value, str) and value:
                    return value.replace("{", _BRACE_GUARD)
            return humanize_key(key)

        return _TRANSLATION.sub(_translate, markup)

    # -- variables --

    def _substitute(self, markup: str, context: Mapping[str, Any]) -> str:
        if "{{" not in markup:
            return markup

        def _replace(match: re.Match) -> str:
            path = match.group(1).strip()
            if path == "else" or not _VALID_PATH.fullmatch(path):
                logger.debug("MalformedTemplate: placeholder %r left verbatim", match.group(0))
                return match.group(0)
            text = format_value(resolve(path, context), path, context)
            return text.replace("{", _BRACE_GUARD)

        result = _RAW_VARIABLE.sub(_replace, markup)
        return _VARIABLE.sub(_replace, result)


_default_processor: Optional[TemplateProcessor] = None


def get_template_processor() -> TemplateProcessor:
    global _default_processor
    if _default_processor is None:
        _default_processor = TemplateProcessor()
    return _default_processor


def process_template(markup: Any, context: Optional[Mapping[str, Any]] = None) -> Any:
    return get_template_processor().process(markup, context)
