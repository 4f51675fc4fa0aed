"""Lexical patterns shared by the relationship finders.

Everything here is regular-expression matching over single lines. There is
no tokenizer: string literals and comments are matched like code.
"""
import re
from typing import Iterable, List, Optional, Pattern

IDENTIFIER = r'[a-zA-Z_$][a-zA-Z0-9_$]*'

# ── Identifier extraction ──

_DECLARATION_RE = re.compile(rf'(?:const|let|var)\s+({IDENTIFIER})')
_ASSIGNMENT_RE = re.compile(rf'({IDENTIFIER})\s*=')
_CALL_RE = re.compile(rf'({IDENTIFIER})\s*\(')
_PROPERTY_ACCESS_RE = re.compile(rf'({IDENTIFIER})\.')
_INDEX_ACCESS_RE = re.compile(rf'({IDENTIFIER})\[')

_VARIABLE_SHAPES = (
    _DECLARATION_RE,
    _ASSIGNMENT_RE,
    _CALL_RE,
    _PROPERTY_ACCESS_RE,
    _INDEX_ACCESS_RE,
)

# Bare identifiers inside a parenthesized argument list or condition,
# e.g. ``x`` and ``y`` in ``log(x + y)``
_PARENTHESIZED_RE = re.compile(r'\(([^()]*)\)')
_OPERAND_RE = re.compile(rf'(?<![\w$.])({IDENTIFIER})')

_NON_VARIABLE_WORDS = frozenset({
    'true', 'false', 'null', 'undefined', 'this', 'self', 'super',
    'new', 'typeof', 'instanceof', 'in', 'of', 'await', 'void', 'delete',
    'const', 'let', 'var', 'function', 'return', 'async',
    'None', 'True', 'False', 'not', 'and', 'or', 'is', 'lambda',
})

# Import-candidate shapes are narrower: PascalCase tokens anywhere, and
# lower-case names only when called, dereferenced or indexed.
_IMPORT_CANDIDATE_SHAPES = (
    re.compile(r'([A-Z][a-zA-Z0-9_]*)'),
    re.compile(r'([a-z][a-zA-Z0-9_]*)\s*\('),
    re.compile(r'([a-z][a-zA-Z0-9_]*)\.'),
    re.compile(r'([a-z][a-zA-Z0-9_]*)\['),
)

_MEMBER_SHAPES = (
    re.compile(rf'this\.({IDENTIFIER})'),
    re.compile(rf'self\.({IDENTIFIER})'),
    _CALL_RE,
)

BUILTIN_FUNCTIONS = frozenset({
    'console', 'log', 'error', 'warn', 'info',
    'setTimeout', 'setInterval', 'clearTimeout', 'clearInterval',
    'parseInt', 'parseFloat', 'isNaN', 'isFinite',
    'Math', 'Date', 'Array', 'Object', 'String', 'Number', 'Boolean',
    'if', 'else', 'for', 'while', 'do', 'switch', 'case', 'break', 'continue', 'return',
})

# ── Control flow ──

_LOOP_RE = re.compile(r'^\s*(for|while|do)\s*[({]')
_CONDITIONAL_RE = re.compile(r'^\s*(if|else\s*if|else)\s*[({]')
_TRY_CATCH_RE = re.compile(r'^\s*(try|catch|finally)\s*[({]')
_CATCH_OR_FINALLY_RE = re.compile(r'^\s*(catch|finally)\s*[({]')
_TRY_HEADER_RE = re.compile(r'^\s*try\s*\{')
_SWITCH_STRUCTURE_RE = re.compile(r'^\s*(switch\s*\(|case\b.*:|default\s*:)')
_SWITCH_HEADER_RE = re.compile(r'^\s*switch\s*\(')
_CASE_RE = re.compile(r'^\s*(case|default)')
_BREAK_CONTINUE_RE = re.compile(r'^\s*(break|continue)\s*;?')
_RETURN_RE = re.compile(r'^\s*return\b')
_ELSE_IF_RE = re.compile(r'^\s*else\s*if\s*\(')
_ELSE_RE = re.compile(r'^\s*else\b')

# ── Imports ──

_IMPORT_STATEMENT_SHAPES = (
    re.compile(r'^\s*import\s+'),
    re.compile(r'''^\s*from\s+['"`]'''),
    re.compile(r'^\s*const\s+.*=\s*require\('),
    re.compile(r'^\s*#include\s*<'),
    re.compile(r'^\s*using\s+'),
    re.compile(r'^\s*from\s+\w+\s+import'),
)

NAMED_IMPORT_RE = re.compile(r'import\s*(?:type\s*)?\{\s*([^}]+)\s*\}\s*from')
DEFAULT_IMPORT_RE = re.compile(rf'import\s+({IDENTIFIER})\s+from')
NAMESPACE_IMPORT_RE = re.compile(rf'import\s*\*\s*as\s+({IDENTIFIER})\s+from')
REQUIRE_IMPORT_RE = re.compile(rf'const\s+({IDENTIFIER})\s*=\s*require\(')
REEXPORT_RE = re.compile(r'export\s*\{|export\s*\*')

# ── Functions and classes ──

_FUNCTION_NAME_SHAPES = (
    re.compile(rf'function\s+({IDENTIFIER})\s*\('),
    re.compile(rf'const\s+({IDENTIFIER})\s*=\s*function'),
    re.compile(rf'const\s+({IDENTIFIER})\s*=\s*\('),
    re.compile(rf'({IDENTIFIER})\s*:\s*function'),
    re.compile(rf'({IDENTIFIER})\s*\(.*\)\s*=>'),
)

_PYTHON_DEF_RE = re.compile(rf'^\s*(?:async\s+)?def\s+({IDENTIFIER})\s*\(')

# [async] [static] name(args) [: ReturnType] {
_METHOD_HEADER_RE = re.compile(
    rf'^\s*(?:async\s+)?(?:static\s+)?(?:get\s+|set\s+)?({IDENTIFIER})\s*'
    r'\([^)]*\)\s*'
    r'(?::\s*[^{]*?)?\s*\{'
)

_NOT_METHOD_NAMES = frozenset({
    'if', 'for', 'while', 'switch', 'catch', 'function', 'return', 'with', 'do',
})

_FUNCTION_KEYWORD_RE = re.compile(r'function|=>|:')

_CLASS_NAME_SHAPES = (
    re.compile(rf'class\s+({IDENTIFIER})'),
    re.compile(rf'interface\s+({IDENTIFIER})'),
    re.compile(rf'type\s+({IDENTIFIER})'),
)

_CONSTRUCTOR_SHAPES = (
    re.compile(r'constructor\s*\('),
    re.compile(r'__init__\s*\('),
)

_COMMENT_PREFIXES = ('//', '/*', '*', '#')


def _unique(names: Iterable[str]) -> List[str]:
    """Deduplicate while keeping first-seen order."""
    return list(dict.fromkeys(names))


def _collect(patterns: Iterable[Pattern], text: str) -> List[str]:
    return _unique(
        match.group(1)
        for pattern in patterns
        for match in pattern.finditer(text)
    )


def word_pattern(name: str) -> Pattern:
    """Compile a word-boundary-delimited pattern for a bare identifier.

    ``\\b`` never matches next to ``$``, so a ``$`` at either end of the name
    is delimited by lookarounds instead.
    """
    start = r'(?<![\w$])' if name.startswith('$') else r'\b'
    end = r'(?![\w$])' if name.endswith('$') else r'\b'
    return re.compile(rf'{start}{re.escape(name)}{end}')


def extract_operand_names(text: str) -> List[str]:
    """Bare identifiers used inside parentheses, keywords and literals excluded."""
    return _unique(
        match.group(1)
        for group in _PARENTHESIZED_RE.finditer(text)
        for match in _OPERAND_RE.finditer(group.group(1))
        if match.group(1) not in _NON_VARIABLE_WORDS
    )


def extract_variable_names(text: str) -> List[str]:
    """Identifiers declared, assigned, called, dereferenced, indexed or passed on a line."""
    return _unique(_collect(_VARIABLE_SHAPES, text) + extract_operand_names(text))


def extract_declared_names(text: str) -> List[str]:
    """Names introduced by ``const|let|var NAME`` on a line."""
    return _collect((_DECLARATION_RE,), text)


def extract_call_names(text: str) -> List[str]:
    """Names used in call position, ``NAME(``."""
    return _collect((_CALL_RE,), text)


def extract_import_candidates(text: str) -> List[str]:
    """Identifiers on a line that may have been brought in by an import."""
    return _collect(_IMPORT_CANDIDATE_SHAPES, text)


def extract_member_names(text: str) -> List[str]:
    """Member-shaped identifiers: ``this.NAME``, ``self.NAME`` and calls."""
    return _collect(_MEMBER_SHAPES, text)


def is_builtin_function(name: str) -> bool:
    return name in BUILTIN_FUNCTIONS


def function_definition_patterns(name: str) -> List[Pattern]:
    """The five definition shapes a call to ``name`` can resolve to."""
    name = re.escape(name)
    return [
        re.compile(rf'function\s+{name}\s*\('),
        re.compile(rf'const\s+{name}\s*=\s*function'),
        re.compile(rf'const\s+{name}\s*=\s*\('),
        re.compile(rf'{name}\s*:\s*function'),
        re.compile(rf'{name}\s*\(.*\)\s*=>'),
    ]


def member_patterns(name: str) -> List[Pattern]:
    """Shapes under which a class member shows up inside the class body."""
    name = re.escape(name)
    return [
        re.compile(rf'\b{name}\s*\('),
        re.compile(rf'\b{name}\s*:'),
        re.compile(rf'\bthis\.{name}\b'),
        re.compile(rf'\bself\.{name}\b'),
        re.compile(rf'\b{name}\s*='),
    ]


def is_loop_structure(text: str) -> bool:
    return bool(_LOOP_RE.match(text))


def is_conditional_structure(text: str) -> bool:
    return bool(_CONDITIONAL_RE.match(text))


def is_else_branch(text: str) -> bool:
    """``else if (`` or ``else`` continuing a conditional chain."""
    return bool(_ELSE_IF_RE.match(text) or _ELSE_RE.match(text))


def is_try_catch_structure(text: str) -> bool:
    return bool(_TRY_CATCH_RE.match(text))


def is_catch_or_finally(text: str) -> bool:
    return bool(_CATCH_OR_FINALLY_RE.match(text))


def is_switch_structure(text: str) -> bool:
    return bool(_SWITCH_STRUCTURE_RE.match(text))


def is_switch_header(text: str) -> bool:
    return bool(_SWITCH_HEADER_RE.match(text))


def is_case_label(text: str) -> bool:
    return bool(_CASE_RE.match(text))


def is_break_or_continue(text: str) -> bool:
    return bool(_BREAK_CONTINUE_RE.match(text))


def is_return_statement(text: str) -> bool:
    return bool(_RETURN_RE.match(text))


def is_whitespace_or_comment(text: str) -> bool:
    trimmed = text.strip()
    return trimmed == '' or trimmed.startswith(_COMMENT_PREFIXES)


def is_import_statement(text: str) -> bool:
    return any(pattern.match(text) for pattern in _IMPORT_STATEMENT_SHAPES)


def match_function_name(text: str) -> Optional[str]:
    """Name of the function a line defines, if it looks like a definition.

    The five JavaScript shapes are tried first, then a Python ``def`` and
    finally a method header such as ``render() {``.
    """
    for pattern in _FUNCTION_NAME_SHAPES:
        match = pattern.search(text)
        if match:
            return match.group(1)

    match = _PYTHON_DEF_RE.match(text)
    if match:
        return match.group(1)

    match = _METHOD_HEADER_RE.match(text)
    if match and match.group(1) not in _NOT_METHOD_NAMES:
        return match.group(1)

    return None


def defines_function(text: str, name: str) -> bool:
    """Whether a line mentioning ``name`` looks like where it is defined."""
    if name not in text:
        return False
    return bool(_FUNCTION_KEYWORD_RE.search(text)) or match_function_name(text) == name


def match_class_name(text: str) -> Optional[str]:
    """Name declared by a ``class``/``interface``/``type`` header on a line."""
    for pattern in _CLASS_NAME_SHAPES:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def class_declaration_pattern(class_name: str) -> Pattern:
    return re.compile(rf'class\s+{re.escape(class_name)}\b')


def is_constructor(text: str) -> bool:
    return any(pattern.search(text) for pattern in _CONSTRUCTOR_SHAPES)


def is_try_header(text: str) -> bool:
    return bool(_TRY_HEADER_RE.match(text))


def after_closing_braces(text: str) -> str:
    """Text following any leading ``}``, e.g. ``else {`` for ``} else {``."""
    return re.sub(r'^[\s}]*', '', text).strip()
