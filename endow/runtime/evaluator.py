"""
Endow Sandboxed Evaluator

Executes Python source under exactly the names in a capability set.

The execution scope is a fresh globals dict holding the capabilities and an
empty ``__builtins__`` namespace, so every name the source did not receive
is unbound. The leak guard runs on the parsed tree before anything executes.

Evaluation modes:
- EXPRESSION: source is coerced into expression position (wrapped in
  parentheses on their own lines), so line breaks and trailing comments are
  allowed but anything that is not a single expression is a syntax error
- ASSERTED_EXPRESSION: source must already parse as a single expression
- PROGRAM: statements run in order; the value of a trailing expression
  statement is returned, otherwise None
"""

from __future__ import annotations

import ast
import io
import logging
import re
import tokenize
from types import CodeType
from typing import Any, Dict, Mapping, Optional

from endow.errors import SourceSyntaxError, TypeMismatchError, UnboundNameError
from endow.runtime.capabilities import capability_names
from endow.runtime.guard import check_tree
from endow.runtime.settings import EvaluationMode, EvaluationSettings

logger = logging.getLogger(__name__)

_OPENING = frozenset("([{")
_CLOSING = frozenset(")]}")
_INSIGNIFICANT = frozenset({
    tokenize.COMMENT,
    tokenize.NL,
    tokenize.NEWLINE,
    tokenize.INDENT,
    tokenize.DEDENT,
    tokenize.ENDMARKER,
})
_NAME_IN_MESSAGE = re.compile(r"'([^']+)'|^(\w+) not found")


class SandboxedEvaluator:
    """
    Evaluates EvaluationSettings.

    Stateless; one instance may serve any number of evaluations.
    """

    def evaluate(self, settings: EvaluationSettings) -> Any:
        """
        Evaluate settings and return the result.

        Raises:
            TypeMismatchError: If settings is not EvaluationSettings
            SourceSyntaxError: If the source does not parse in the given mode
            RestrictedSyntaxError: If the source touches restricted attributes
            UnboundNameError: If the source references a name it was not granted
        """
        if not isinstance(settings, EvaluationSettings):
            raise TypeMismatchError("settings", settings, expected="EvaluationSettings")

        logger.debug(
            "Evaluating %s at %s with capabilities %s",
            settings.mode.value,
            settings.location,
            capability_names(settings.capabilities),
        )

        mode = settings.mode
        if mode is EvaluationMode.EXPRESSION:
            return self._eval_expression(settings)
        elif mode is EvaluationMode.ASSERTED_EXPRESSION:
            return self._eval_asserted_expression(settings)
        elif mode is EvaluationMode.PROGRAM:
            return self._eval_program(settings)
        raise TypeMismatchError("mode", mode, expected="an EvaluationMode")

    def _eval_expression(self, settings: EvaluationSettings) -> Any:
        wrapped = f"(\n{settings.source}\n)"
        _check_expression_shape(wrapped, settings.location)
        tree = _parse(wrapped, settings.location, "eval", line_shift=1)
        ast.increment_lineno(tree, -1)
        check_tree(tree, settings.capabilities, settings.location)
        code = _compile(tree, settings.location, "eval")
        return _run(settings, expression=code)

    def _eval_asserted_expression(self, settings: EvaluationSettings) -> Any:
        tree = _parse(settings.source, settings.location, "eval")
        check_tree(tree, settings.capabilities, settings.location)
        code = _compile(tree, settings.location, "eval")
        return _run(settings, expression=code)

    def _eval_program(self, settings: EvaluationSettings) -> Any:
        tree = _parse(settings.source, settings.location, "exec")
        check_tree(tree, settings.capabilities, settings.location)

        body = list(tree.body)
        tail: Optional[ast.expr] = None
        if body and isinstance(body[-1], ast.Expr):
            tail = body.pop().value

        statements = _compile(ast.Module(body=body, type_ignores=[]), settings.location, "exec")
        expression = None
        if tail is not None:
            expression = _compile(ast.Expression(body=tail), settings.location, "eval")
        return _run(settings, statements=statements, expression=expression)


def _check_expression_shape(wrapped: str, location: str) -> None:
    """
    Reject sources the parenthesised coercion would misread.

    ``wrapped`` is the source inside the coercion parentheses, so indentation
    is not significant. Empty or comment-only text would become ``()``, and a
    closing bracket that balances the opening wrapper before its own closing
    line could escape it.
    """
    opening = (1, 0)
    closing = (wrapped.count("\n") + 1, 0)
    depth = 0
    significant = False
    try:
        for token in tokenize.generate_tokens(io.StringIO(wrapped).readline):
            if token.type == tokenize.OP and token.start in (opening, closing):
                depth += 1 if token.start == opening else -1
                continue
            if token.type not in _INSIGNIFICANT:
                significant = True
            if token.type != tokenize.OP:
                continue
            if token.string in _OPENING:
                depth += 1
            elif token.string in _CLOSING:
                depth -= 1
                if depth < 1:
                    raise SourceSyntaxError(
                        f"unmatched {token.string!r}",
                        location,
                        token.start[0] - 1,
                        token.start[1] + 1,
                        token.line,
                    )
    except SourceSyntaxError:
        raise
    except (tokenize.TokenError, SyntaxError) as err:
        message = err.args[0] if err.args else str(err)
        raise SourceSyntaxError(str(message), location) from err

    if not significant:
        raise SourceSyntaxError("expected an expression, got empty source", location)


def _parse(text: str, location: str, mode: str, line_shift: int = 0) -> ast.AST:
    try:
        return ast.parse(text, filename=location, mode=mode)
    except (SyntaxError, ValueError) as err:
        raise _translate_syntax_error(err, location, line_shift) from err


def _compile(tree: ast.AST, location: str, mode: str) -> CodeType:
    try:
        return compile(tree, location, mode, dont_inherit=True)
    except (SyntaxError, ValueError) as err:
        raise _translate_syntax_error(err, location) from err


def _translate_syntax_error(err: Exception, location: str, line_shift: int = 0) -> SourceSyntaxError:
    if not isinstance(err, SyntaxError):
        return SourceSyntaxError(str(err), location)
    lineno = err.lineno if isinstance(err.lineno, int) else None
    if lineno is not None:
        lineno = max(1, lineno - line_shift)
    return SourceSyntaxError(err.msg or str(err), location, lineno, err.offset, err.text)


def _make_scope(capabilities: Mapping[str, Any]) -> Dict[str, Any]:
    scope = dict(capabilities)
    scope["__builtins__"] = {}
    return scope


def _run(settings: EvaluationSettings,
         statements: Optional[CodeType] = None,
         expression: Optional[CodeType] = None) -> Any:
    scope = _make_scope(settings.capabilities)
    try:
        if statements is not None:
            exec(statements, scope)
        if expression is not None:
            return eval(expression, scope)
        return None
    except (UnboundNameError, UnboundLocalError):
        # A local read before assignment is a bug in the source, not a missing capability.
        raise
    except NameError as err:
        if not _raised_in_sandbox(err, settings.location):
            raise
        raise UnboundNameError(_missing_name(err), settings.location) from err


def _raised_in_sandbox(err: BaseException, location: str) -> bool:
    """True if the innermost frame of the traceback is sandboxed code."""
    tb = err.__traceback__
    if tb is None:
        return False
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_filename == location


def _missing_name(err: NameError) -> str:
    name = getattr(err, "name", None)
    if name:
        return name
    match = _NAME_IN_MESSAGE.search(str(err))
    if match:
        return match.group(1) or match.group(2)
    return str(err)


default_evaluator = SandboxedEvaluator()
