import pytest

from minitac import Lexer, LexicalError, Token, TokenKind, tokenize, token_category


def kinds(src):
    return [t.kind for t in tokenize(src)]


def test_declaration_tokens():
    assert tokenize("int a;") == [
        Token(TokenKind.KW_INT, "int", 1, 1),
        Token(TokenKind.IDENTIFIER, "a", 1, 5),
        Token(TokenKind.SEMICOLON, ";", 1, 6),
        Token(TokenKind.END_OF_INPUT, "EOF", 1, 7),
    ]


def test_all_single_character_tokens():
    assert kinds("+-*/=;()") == [
        TokenKind.PLUS, TokenKind.MINUS, TokenKind.STAR, TokenKind.SLASH,
        TokenKind.ASSIGN, TokenKind.SEMICOLON, TokenKind.LPAREN, TokenKind.RPAREN,
        TokenKind.END_OF_INPUT,
    ]


@pytest.mark.parametrize("src", ["", "   \n\t ", "// only a comment", "// a\n\n   // b\n"])
def test_blank_input_is_just_the_end_marker(src):
    toks = tokenize(src)
    assert len(toks) == 1
    assert toks[0].kind == TokenKind.END_OF_INPUT


def test_keywords_need_an_exact_match():
    toks = tokenize("int integer print printer _x9")
    assert [t.kind for t in toks[:-1]] == [
        TokenKind.KW_INT, TokenKind.IDENTIFIER, TokenKind.KW_PRINT,
        TokenKind.IDENTIFIER, TokenKind.IDENTIFIER,
    ]


def test_numbers_are_kept_verbatim():
    toks = tokenize("007 12345678901234567890")
    assert [t.text for t in toks[:-1]] == ["007", "12345678901234567890"]
    assert all(t.kind == TokenKind.NUMBER for t in toks[:-1])


def test_digit_run_then_letters_splits():
    assert [t.text for t in tokenize("12ab")[:-1]] == ["12", "ab"]


def test_positions_track_lines_and_columns():
    toks = tokenize("int a;\n  a = 1; // set\n\tprint a;")
    positions = {(t.text, t.line, t.column) for t in toks}
    assert ("a", 2, 3) in positions
    assert ("1", 2, 7) in positions
    assert ("print", 3, 2) in positions


def test_comment_runs_to_end_of_line_only():
    toks = tokenize("a // b c\nd")
    assert [t.text for t in toks[:-1]] == ["a", "d"]


def test_single_slash_is_division():
    assert kinds("a/b")[:3] == [TokenKind.IDENTIFIER, TokenKind.SLASH, TokenKind.IDENTIFIER]


def test_unexpected_character():
    with pytest.raises(LexicalError) as exc:
        tokenize("int a;\na = 1 # 2;")
    err = exc.value
    assert (err.line, err.column, err.lexeme) == (2, 7, "#")
    assert str(err) == "Lexical error at 2:7 -> Unexpected character '#'"


def test_tokenizing_is_deterministic():
    src = "int x; x = -(1 + 2) * 3; print x;"
    assert tokenize(src) == tokenize(src)


def test_token_categories():
    assert token_category(TokenKind.KW_PRINT) == "KEYWORD"
    assert token_category(TokenKind.ASSIGN) == "OPERATOR"
    assert token_category(TokenKind.RPAREN) == "SYMBOL"
    assert token_category(TokenKind.END_OF_INPUT) == "EOF"


def test_lexer_instance_can_tokenize_again():
    lexer = Lexer("int a;\nprint a;\n")
    first = lexer.tokenize()
    second = lexer.tokenize()
    assert second == first
    assert [t.kind for t in second].count(TokenKind.END_OF_INPUT) == 1
    assert second[-1].line == 3
