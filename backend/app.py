import io
import logging

from flask import Flask, request, jsonify
from flask_cors import CORS

import minitac

log = logging.getLogger(__name__)

app = Flask(__name__)
app.config.update(MAX_CONTENT_LENGTH=1024 * 1024, AST_MAX_DEPTH=200)
app.config.from_prefixed_env("MINITAC")
CORS(app)  # allow cross-origin requests


def ast_to_dict(node):
    """
    Serialize AST to dict recursively
    """
    if node is None:
        return None
    d = {"type": type(node).__name__}
    if isinstance(node, minitac.Program):
        d["statements"] = [ast_to_dict(s) for s in node.statements]
    elif isinstance(node, minitac.Declaration):
        d["name"] = node.name.text
        d["line"] = node.name.line
    elif isinstance(node, minitac.Assignment):
        d["name"] = node.name.text
        d["line"] = node.name.line
        d["value"] = ast_to_dict(node.value)
    elif isinstance(node, minitac.PrintStatement):
        d["line"] = node.keyword.line
        d["value"] = ast_to_dict(node.value)
    elif isinstance(node, minitac.BinaryOp):
        d["op"] = node.op.text
        d["left"] = ast_to_dict(node.left)
        d["right"] = ast_to_dict(node.right)
    elif isinstance(node, minitac.UnaryOp):
        d["op"] = node.op.text
        d["operand"] = ast_to_dict(node.operand)
    elif isinstance(node, minitac.NumberLiteral):
        d["value"] = node.text
    elif isinstance(node, minitac.VariableRef):
        d["name"] = node.name
    return d


def ast_depth(program):
    """Deepest expression nesting in the program, counted without recursion."""
    deepest = 0
    stack = [(s, 1) for s in program.statements]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(node, (minitac.Assignment, minitac.PrintStatement)):
            stack.append((node.value, depth + 1))
        elif isinstance(node, minitac.UnaryOp):
            stack.append((node.operand, depth + 1))
        elif isinstance(node, minitac.BinaryOp):
            stack.append((node.left, depth + 1))
            stack.append((node.right, depth + 1))
    return deepest


def serialize_ast(program):
    if program is None:
        return {}
    # ast_to_dict and the JSON encoder both recurse once per level
    if ast_depth(program) > app.config["AST_MAX_DEPTH"]:
        return {"type": "Program", "truncated": True}
    return ast_to_dict(program)


def token_to_dict(token):
    return {
        "kind": token.kind.value,
        "text": token.text,
        "line": token.line,
        "column": token.column,
        "category": minitac.token_category(token.kind),
    }


@app.route("/api/compile", methods=["POST"])
def compile_code():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"ok": False, "error": "request body must be a JSON object"}), 400
    code = str(data.get("code") or "")
    try:
        stdout = io.StringIO()
        result = minitac.compile_source(code, report=stdout)

        # Each report section exactly as the CLI prints it, header included
        tokens_text = minitac.format_tokens(result.tokens) if result.tokens is not None else ""
        symbols_text = minitac.format_symbol_table(result.symbol_table) if result.symbol_table is not None else ""
        tac_text = minitac.format_tac(result.tac) if result.tac is not None else ""

        response = {
            "ok": result.ok,
            "exitCode": 0 if result.ok else 1,
            "stdout": stdout.getvalue(),
            "stderr": "".join(f"{e}\n" for e in result.errors),
            "tokens": tokens_text,
            "symbolTable": symbols_text,
            "tac": tac_text,
            "tokenList": [token_to_dict(t) for t in (result.tokens or []) if t.kind != minitac.TokenKind.END_OF_INPUT],
            "ast": serialize_ast(result.ast),
            "symbols": result.symbol_table.to_list() if result.symbol_table is not None else [],
            "instructions": [str(t) for t in result.tac] if result.tac else [],
            "errors": result.errors,
        }
        return jsonify(response)
    except Exception as e:
        log.exception("unexpected failure while compiling")
        return jsonify({
            "ok": False,
            "exitCode": -1,
            "stdout": "",
            "stderr": f"Unexpected error: {e}\n",
            "tokens": "",
            "symbolTable": "",
            "tac": "",
            "errors": [f"Unexpected error: {str(e)}"],
        }), 500


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(levelname)s:%(name)s:%(lineno)d: %(message)s')
    app.run(debug=app.config.get("DEBUG", False), port=int(app.config.get("PORT", 5000)))
