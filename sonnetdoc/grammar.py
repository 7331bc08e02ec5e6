"""
grammar.py — Parsimonious PEG grammar for the Jsonnet subset sonnetdoc reads.

Binary operators are matched flat (``unary (op unary)*``); precedence and
associativity are applied by the AST builder in :mod:`sonnetdoc.parser`.

Rules that are a bare reference to another rule (``expr = binary_expr``)
are aliases in parsimonious: their parse nodes carry the target's name.
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

JSONNET_GRAMMAR = r'''
    # ─────────────────────────────────────────────────────────────
    # Top level
    # ─────────────────────────────────────────────────────────────

    document            = _ expr _

    expr                = binary_expr
    binary_expr         = unary_expr (_ binary_op _ unary_expr)*
    binary_op           = "||" / "&&" / "==" / "!=" / "<=" / ">=" / "<<" / ">>"
                        / kw_in / "<" / ">" / "|" / "^" / "&"
                        / "+" / "-" / "*" / "/" / "%"
    unary_expr          = (unary_op _ unary_expr) / postfix_expr
    unary_op            = "-" / "+" / "!" / "~"

    postfix_expr        = primary_expr postfix_op*
    postfix_op          = _ (member_op / slice_op / index_op / call_op / object)
    member_op           = "." _ identifier
    index_op            = "[" _ expr _ "]"
    slice_op            = "[" _ expr? _ ":" _ expr? (_ ":" _ expr?)? _ "]"
    call_op             = "(" _ args? _ ")" (_ kw_tailstrict)?
    args                = arg (_ "," _ arg)* (_ ",")?
    arg                 = named_arg / expr
    named_arg           = identifier _ "=" !"=" _ expr

    primary_expr        = local_expr / if_expr / function_expr / assert_expr
                        / error_expr / import_expr / null_lit / true_lit
                        / false_lit / self_lit / dollar_lit / super_expr
                        / string / number / object / array / parens
                        / identifier

    # ─────────────────────────────────────────────────────────────
    # Keyword expressions
    # ─────────────────────────────────────────────────────────────

    local_expr          = kw_local _ bind (_ "," _ bind)* _ ";" _ expr
    bind                = function_bind / value_bind
    function_bind       = identifier _ "(" _ params? _ ")" _ "=" _ expr
    value_bind          = identifier _ "=" !"=" _ expr
    params              = param (_ "," _ param)* (_ ",")?
    param               = identifier (_ "=" _ expr)?

    if_expr             = kw_if _ expr _ kw_then _ expr (_ kw_else _ expr)?
    function_expr       = kw_function _ "(" _ params? _ ")" _ expr
    assert_expr         = assertion _ ";" _ expr
    assertion           = kw_assert _ expr (_ ":" _ expr)?
    error_expr          = kw_error _ expr
    import_expr         = import_kw _ string
    import_kw           = kw_importstr / kw_importbin / kw_import
    super_expr          = kw_super _ (("." _ identifier) / ("[" _ expr _ "]"))
    parens              = "(" _ expr _ ")"

    # ─────────────────────────────────────────────────────────────
    # Objects
    # ─────────────────────────────────────────────────────────────

    object              = "{" _ object_body? _ "}"
    object_body         = object_comprehension / object_members
    object_members      = member (_ "," _ member)* (_ ",")?
    member              = object_local / assertion / field
    object_local        = kw_local _ bind
    field               = field_name _ field_params? _ field_sep _ expr
    field_params        = "(" _ params? _ ")"
    field_name          = identifier / string / computed_name
    computed_name       = "[" _ expr _ "]"
    field_sep           = ~r"\+?:{1,3}"

    object_comprehension = (object_local _ "," _)* computed_name _ field_sep _ expr
                           (_ "," _ object_local)* (_ ",")? _ for_spec (_ comp_spec)*

    # ─────────────────────────────────────────────────────────────
    # Arrays
    # ─────────────────────────────────────────────────────────────

    array               = "[" _ array_body? _ "]"
    array_body          = array_comprehension / array_elements
    array_comprehension = expr (_ ",")? _ for_spec (_ comp_spec)*
    array_elements      = expr (_ "," _ expr)* (_ ",")?

    for_spec            = kw_for _ identifier _ kw_in _ expr
    if_spec             = kw_if _ expr
    comp_spec           = for_spec / if_spec

    # ─────────────────────────────────────────────────────────────
    # Literals
    # ─────────────────────────────────────────────────────────────

    string              = verbatim_string / text_block / double_string / single_string
    double_string       = ~r'"(?:[^"\\]|\\.)*"'s
    single_string       = ~r"'(?:[^'\\]|\\.)*'"s
    verbatim_string     = ~r'@"(?:[^"]|"")*"' / ~r"@'(?:[^']|'')*'"
    text_block          = ~r"\|\|\|-?[ \t]*\n.*?\n[ \t]*\|\|\|"s

    number              = ~r"\d+(?:\.\d+)?(?:[eE][+-]?\d+)?"
    null_lit            = ~r"null\b"
    true_lit            = ~r"true\b"
    false_lit           = ~r"false\b"
    self_lit            = ~r"self\b"
    dollar_lit          = "$"

    # ─────────────────────────────────────────────────────────────
    # Keywords, identifiers & whitespace
    # ─────────────────────────────────────────────────────────────

    keyword             = ~r"(?:assert|else|error|false|for|function|if|importbin|importstr|import|in|local|null|tailstrict|then|self|super|true)\b"
    identifier          = !keyword ~r"[A-Za-z_][A-Za-z0-9_]*"

    kw_assert           = ~r"assert\b"
    kw_else             = ~r"else\b"
    kw_error            = ~r"error\b"
    kw_for              = ~r"for\b"
    kw_function         = ~r"function\b"
    kw_if               = ~r"if\b"
    kw_import           = ~r"import\b"
    kw_importbin        = ~r"importbin\b"
    kw_importstr        = ~r"importstr\b"
    kw_in               = ~r"in\b"
    kw_local            = ~r"local\b"
    kw_super            = ~r"super\b"
    kw_tailstrict       = ~r"tailstrict\b"
    kw_then             = ~r"then\b"

    _                   = ~r"(?:\s+|//[^\n]*|\#[^\n]*|/\*.*?\*/)*"s
'''

GRAMMAR = Grammar(JSONNET_GRAMMAR)
