"""
Whitelisted Python subset accepted by the sandbox.

Shipped source may only define plain functions built from simple control
flow, integer arithmetic and calls to a handful of builtins. The call
expression must be a single call of one of those functions with integer
literal arguments.
"""

import ast

from ..exceptions import SandboxViolationError

ALLOWED_NODES = (
    # Structure
    ast.Module,
    ast.Expression,
    ast.FunctionDef,
    ast.arguments,
    ast.arg,
    # Statements
    ast.If,
    ast.For,
    ast.While,
    ast.Break,
    ast.Continue,
    ast.Pass,
    ast.Return,
    ast.Raise,
    ast.Assign,
    ast.AugAssign,
    ast.Expr,
    # Expressions
    ast.Call,
    ast.keyword,
    ast.Name,
    ast.Constant,
    ast.Tuple,
    ast.BinOp,
    ast.UnaryOp,
    ast.BoolOp,
    ast.Compare,
    ast.IfExp,
    ast.Load,
    ast.Store,
    # Operators
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.FloorDiv,
    ast.Mod,
    ast.And,
    ast.Or,
    ast.Not,
    ast.USub,
    ast.UAdd,
    ast.Eq,
    ast.NotEq,
    ast.Lt,
    ast.LtE,
    ast.Gt,
    ast.GtE,
)

ALLOWED_CALLS = frozenset(
    {
        "print",
        "range",
        "isinstance",
        "int",
        "str",
        "len",
        "abs",
        "min",
        "max",
        "ValueError",
        "TypeError",
    }
)

ALLOWED_CONSTANT_TYPES = (int, str, bool, type(None))


def _violation(node: ast.AST, construct: str | None = None) -> SandboxViolationError:
    return SandboxViolationError(construct or type(node).__name__, getattr(node, "lineno", None))


def validate_source(source: str) -> tuple[ast.Module, frozenset[str]]:
    """
    Parse and check shipped source.

    Returns:
        The parsed module and the names of the functions it defines.

    Raises:
        SyntaxError: If the source does not parse.
        SandboxViolationError: If it leaves the allowed grammar.
    """
    tree = ast.parse(source, mode="exec")

    functions = set()
    for stmt in tree.body:
        if not isinstance(stmt, ast.FunctionDef):
            raise _violation(stmt, f"top-level {type(stmt).__name__}")
        functions.add(stmt.name)

    callable_names = ALLOWED_CALLS | functions
    for node in ast.walk(tree):
        _check_node(node, callable_names)

    return tree, frozenset(functions)


def validate_call(expression: str, functions: frozenset[str]) -> ast.Expression:
    """Parse and check a call expression against the defined functions."""
    tree = ast.parse(expression.strip().rstrip(";"), mode="eval")
    call = tree.body
    if not isinstance(call, ast.Call):
        raise _violation(call, f"{type(call).__name__} as call expression")
    if not isinstance(call.func, ast.Name) or call.func.id not in functions:
        raise _violation(call.func, f"call of {ast.unparse(call.func)}")
    if call.keywords:
        raise _violation(call, "keyword arguments in call expression")
    for arg in call.args:
        if not _is_int_literal(arg):
            raise _violation(arg, f"argument {ast.unparse(arg)}")
    return tree


def _is_int_literal(node: ast.AST) -> bool:
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        node = node.operand
    return (
        isinstance(node, ast.Constant)
        and isinstance(node.value, int)
        and not isinstance(node.value, bool)
    )


def _check_node(node: ast.AST, callable_names: frozenset[str]) -> None:
    if not isinstance(node, ALLOWED_NODES):
        raise _violation(node)

    if isinstance(node, ast.Name) and node.id.startswith("__"):
        raise _violation(node, node.id)
    elif isinstance(node, ast.arg):
        if node.annotation is not None:
            raise _violation(node, "annotation")
        if node.arg.startswith("__"):
            raise _violation(node, node.arg)
    elif isinstance(node, ast.FunctionDef):
        if node.decorator_list:
            raise _violation(node, "decorator")
        if node.returns is not None:
            raise _violation(node, "annotation")
        if node.args.vararg or node.args.kwarg or node.args.kwonlyargs:
            raise _violation(node, "variadic arguments")
    elif isinstance(node, ast.Constant) and not isinstance(node.value, ALLOWED_CONSTANT_TYPES):
        raise _violation(node, f"{type(node.value).__name__} constant")
    elif isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in callable_names:
            raise _violation(node, f"call of {ast.unparse(node.func)}")
    elif isinstance(node, ast.Raise) and node.cause is not None:
        raise _violation(node, "raise from")
