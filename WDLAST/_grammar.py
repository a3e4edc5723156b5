# pyre-strict
# Lark grammars for WDL 1.x. Both front ends share the productions for documents, tasks,
# workflows, types, strings, and commands; they differ in how expressions are written down.

versions = ("1.0", "1.1", "1.2")

keywords = set(
    "Array File Float Int Map None Pair String alias as call command else false if import in"
    " input left meta object output parameter_meta right runtime scatter struct task then true"
    " version workflow Directory".split(" ")
)

_document = r"""
///////////////////////////////////////////////////////////////////////////////////////////////////
// document
///////////////////////////////////////////////////////////////////////////////////////////////////

document: document_element*
?document_element: version | import_doc | task | workflow | struct

version: "version" /[^ \t\r\n]+/

import_doc: "import" string_literal ["as" CNAME] import_alias*
import_alias: "alias" CNAME "as" CNAME

///////////////////////////////////////////////////////////////////////////////////////////////////
// workflow
///////////////////////////////////////////////////////////////////////////////////////////////////

workflow: "workflow" CNAME "{" workflow_element* "}"
?workflow_element: input_decls | bound_decl | call | scatter | conditional | output_decls | meta_section

scatter: "scatter" "(" CNAME "in" expr ")" "{" inner_workflow_element* "}"
conditional: "if" "(" expr ")" "{" inner_workflow_element* "}"
?inner_workflow_element: bound_decl | call | scatter | conditional

call: "call" namespaced_ident _call_body? -> call
    | "call" namespaced_ident "as" CNAME _call_body? -> call_as
namespaced_ident: CNAME ("." CNAME)*
_call_body: "{" call_inputs "}"
call_inputs: input_colon? [call_input ("," call_input)* ","?]
input_colon: "input" ":"
call_input: CNAME ["=" expr]

///////////////////////////////////////////////////////////////////////////////////////////////////
// task
///////////////////////////////////////////////////////////////////////////////////////////////////

task: "task" CNAME "{" task_section* command task_section* "}"
?task_section: input_decls
             | output_decls
             | meta_section
             | runtime_section
             | bound_decl -> noninput_decl

runtime_section: "runtime" "{" [runtime_kv (","? runtime_kv)*] "}"
runtime_kv: CNAME ":" expr

command: "command" (command_brace | command_heredoc)

// brace-delimited command: ~{expr} and ${expr} placeholders, ends at the first unmatched }
COMMAND1_CHAR: /[^~$}]/ | /\$(?=[^{])/ | /~(?=[^{])/
COMMAND1_FRAGMENT: COMMAND1_CHAR+
command_brace: "{" (COMMAND1_FRAGMENT? _EITHER_DELIM placeholder "}")* COMMAND1_FRAGMENT? "}"

// heredoc-delimited command: only ~{expr} placeholders, ends at >>>
COMMAND2_CHAR: /[^~>]/ | /~(?=[^{])/ | />(?=[^>])/ | />>(?=[^>])/
COMMAND2_FRAGMENT: COMMAND2_CHAR+
command_heredoc: "<<<" (COMMAND2_FRAGMENT? "~{" placeholder "}")* COMMAND2_FRAGMENT? ">>>"

///////////////////////////////////////////////////////////////////////////////////////////////////
// struct, declarations & types
///////////////////////////////////////////////////////////////////////////////////////////////////

struct: "struct" CNAME "{" unbound_decl* "}"

input_decls: "input" "{" any_decl* "}"
output_decls: "output" "{" any_decl* "}"

unbound_decl: type CNAME -> decl
bound_decl: type CNAME "=" expr -> decl
?any_decl: unbound_decl | bound_decl

type: CNAME _quant?
    | CNAME "[" type ["," type] "]" _quant?

_quant: optional | nonempty | optional_nonempty
optional: "?"
nonempty: "+"
optional_nonempty: "+?"

///////////////////////////////////////////////////////////////////////////////////////////////////
// meta sections
///////////////////////////////////////////////////////////////////////////////////////////////////

!meta_section: ("meta" | "parameter_meta") meta_object
meta_object: "{" [meta_kv (","? meta_kv)* ","?] "}"
meta_kv: CNAME ":" meta_value
?meta_value: "null" -> meta_null
           | "true" -> meta_true
           | "false" -> meta_false
           | meta_number
           | string_literal -> meta_string
           | meta_object
           | "[" [meta_value ("," meta_value)* ","?] "]" -> meta_array
!meta_number: ["-" | "+"] number

///////////////////////////////////////////////////////////////////////////////////////////////////
// expression operands common to both front ends
///////////////////////////////////////////////////////////////////////////////////////////////////

?literal: "true" -> boolean_true
        | "false" -> boolean_false
        | "None" -> null
        | number

array: "[" [expr ("," expr)* ","?] "]"
pair: "(" expr "," expr ")"
group: "(" expr ")"
map: "{" [map_kv ("," map_kv)* ","?] "}"
map_kv: expr ":" expr
ifthenelse: "if" expr "then" expr "else" expr
apply: CNAME "(" [expr ("," expr)*] ")"
obj: CNAME "{" [object_kv ("," object_kv)* ","?] "}"
object_kv: CNAME ":" expr
         | string_literal ":" expr

///////////////////////////////////////////////////////////////////////////////////////////////////
// strings & placeholders
///////////////////////////////////////////////////////////////////////////////////////////////////

// string (single-quoted)
STRING1_CHAR: _DOUBLE_BACKSLASH | "\\'" | /[^'~$]/ | /\$(?=[^{])/ | /\~(?=[^{])/
STRING1_FRAGMENT: STRING1_CHAR+
string1: /'/ (STRING1_FRAGMENT? _EITHER_DELIM placeholder "}")* STRING1_FRAGMENT? /'/ -> string

// string (double-quoted)
STRING2_CHAR: _DOUBLE_BACKSLASH | "\\\"" | /[^"~$]/ | /\$(?=[^{])/ | /~(?=[^{])/
STRING2_FRAGMENT: STRING2_CHAR+
string2: /"/ (STRING2_FRAGMENT? _EITHER_DELIM placeholder "}")* STRING2_FRAGMENT? /"/ -> string

?string: string1 | string2

// string literal without placeholders, for meta values, import URIs, and object keys
_DOUBLE_BACKSLASH.2: "\\\\"
STRING_INNER1: (_DOUBLE_BACKSLASH|"\\'"|/[^']/)
ESCAPED_STRING1: "'" STRING_INNER1* "'"
string_literal: ESCAPED_STRING | ESCAPED_STRING1

_EITHER_DELIM.2: "~{" | "${"

?placeholder_value: string_literal
                  | number
!?placeholder_name: CNAME | "true" | "false"
placeholder_option: placeholder_name "=" placeholder_value
placeholder: placeholder_option* expr

///////////////////////////////////////////////////////////////////////////////////////////////////
// lexical
///////////////////////////////////////////////////////////////////////////////////////////////////

CNAME: /[a-zA-Z][a-zA-Z0-9_]*/

%import common.ESCAPED_STRING
%import common.NEWLINE

SPACE: /[ \t]+/
COMMENT: /[ \t]*/ "#" /[^\r\n]*/

%ignore SPACE
%ignore NEWLINE
%ignore COMMENT
"""

# Expressions layered by precedence, so that lark produces a tree with the operators already
# nested correctly; integer literals are lexed per radix.
_tree_expr = r"""
?expr: expr_infix0

?expr_infix0: expr_infix0 "||" expr_infix1 -> lor
            | expr_infix1

?expr_infix1: expr_infix1 "&&" expr_infix2 -> land
            | expr_infix2

?expr_infix2: expr_infix2 "==" expr_infix3 -> eqeq
            | expr_infix2 "!=" expr_infix3 -> neq
            | expr_infix3

?expr_infix3: expr_infix3 "<=" expr_infix4 -> lte
            | expr_infix3 ">=" expr_infix4 -> gte
            | expr_infix3 "<" expr_infix4 -> lt
            | expr_infix3 ">" expr_infix4 -> gt
            | expr_infix4

?expr_infix4: expr_infix4 "+" expr_infix5 -> add
            | expr_infix4 "-" expr_infix5 -> sub
            | expr_infix5

?expr_infix5: expr_infix5 "*" expr_unary -> mul
            | expr_infix5 "/" expr_unary -> div
            | expr_infix5 "%" expr_unary -> rem
            | expr_unary

?expr_unary: "!" expr_unary -> logical_not
           | "-" expr_unary -> negate
           | "+" expr_unary -> unary_plus
           | expr_core

?expr_core: group
          | literal
          | string
          | array
          | pair
          | map
          | ifthenelse
          | apply
          | obj
          | expr_core "[" expr "]" -> at
          | expr_core "." CNAME -> get_name
          | CNAME -> left_name

?number: HEX_INT -> hex_int
       | OCT_INT -> oct_int
       | DEC_INT -> dec_int
       | FLOAT -> float

FLOAT.3: /(\d+\.\d*|\.\d+)([eE][+-]?\d+)?|\d+[eE][+-]?\d+/
HEX_INT.2: /0[xX][0-9a-fA-F]+/
OCT_INT.2: /0[0-7]+/
DEC_INT: /0|[1-9][0-9]*/
"""

# Expressions as flat sequences: operands separated by binary operators, prefix operators
# preceding an operand, and postfix index/member accesses following one. A single NUMBER
# terminal covers every numeric notation.
_flat_expr = r"""
?expr: infix

?infix: prefixed (binop prefixed)*
!binop: "||" | "&&" | "==" | "!=" | "<=" | ">=" | "<" | ">" | "+" | "-" | "*" | "/" | "%"

?prefixed: access
         | unary
!unary: ("!" | "-" | "+")+ access

?access: primary (index | field)*
index: "[" expr "]"
field: "." CNAME

?primary: group
        | literal
        | string
        | array
        | pair
        | map
        | ifthenelse
        | apply
        | obj
        | CNAME -> left_name

number: NUMBER
NUMBER: /(\d+\.\d*|\.\d+)([eE][+-]?\d+)?|\d+[eE][+-]?\d+|0[xX][0-9a-fA-F]+|0[0-7]+|0|[1-9][0-9]*/
"""

grammars = {"tree": _document + _tree_expr, "flat": _document + _flat_expr}
