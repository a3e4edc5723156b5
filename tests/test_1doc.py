import unittest, logging, tempfile, os
import lark
from concurrent import futures
from unittest import mock
import WDLAST
from WDLAST import Expr, Tree, Type, Meta, Error, _parser

_pos = WDLAST.SourcePosition("", "", 0, 0, 0, 0, 0, 0)


def parse_all(txt, **kwargs):
    # parse with each front end, checking they agree
    ans = [WDLAST.parse_source(txt, front_end=fe, **kwargs) for fe in WDLAST.front_ends()]
    for other in ans[1:]:
        assert other == ans[0], txt
    return ans[0]


hello_wdl = """
version 1.1

import "lib/tasks.wdl" as lib alias Sample as LibSample alias Run as LibRun
import "https://example.com/wdl/util.wdl?ref=main"

struct Example1 {
    Float f
    Map[String,Int] m
}

task hello {
    input {
        String who
        Int? times = 1
        Array[File]+ files
    }
    String greeting = "Hello, ~{who}!"
    command <<<
        echo "~{greeting}"
        for f in ~{sep=" " files}; do
            wc -l "$f"
        done
    >>>
    output {
        String out = read_string(stdout())
        Pair[Int,String] p = (1, "a")
    }
    runtime {
        docker: "ubuntu:22.04"
        cpu: 2
    }
    meta {
        author: "someone"
        release: 1.5
        tags: ["a", "b"]
        nested: { x: null, y: -3, z: true, w: 0x10 }
    }
    parameter_meta {
        who: "name to greet"
    }
}

workflow main {
    input {
        Array[String] names
        Map[Int, Boolean] m1 = { 1: true, 2: false }
        Boolean flag = false
    }
    Example1 ex = Example1 { f: 1.0, m: { "a": 1 } }
    scatter (name in names) {
        call hello { input: who = name, files = [] }
    }
    if (flag && length(names) > 0) {
        call lib.greet as g { who = names[0], files, }
    }
    call hello as h2
    output {
        Array[String] outs = hello.out
        String? first = g.out
    }
    meta {
        description: "demo"
    }
}
"""


class TestDocument(unittest.TestCase):
    def test_hello(self):
        doc = parse_all(hello_wdl, uri="hello.wdl")
        self.assertEqual(doc.version.identifier, "1.1")
        self.assertEqual(doc.pos.uri, "hello.wdl")
        self.assertEqual(
            [type(elt) for elt in doc.body],
            [Tree.Import, Tree.Import, Tree.StructTypeDef, Tree.Task, Tree.Workflow],
        )
        self.assertEqual(doc.source_text, hello_wdl)
        self.assertEqual(doc.source_lines[1], "version 1.1")

        # imports
        self.assertEqual(doc.imports[0].uri, "lib/tasks.wdl")
        self.assertEqual(doc.imports[0].namespace, "lib")
        self.assertEqual(doc.imports[0].aliases, {"Sample": "LibSample", "Run": "LibRun"})
        self.assertEqual(list(doc.imports[0].aliases), ["Sample", "Run"])
        self.assertEqual(doc.imports[1].namespace, "util")
        self.assertEqual(doc.imports[1].aliases, {})

        # struct member order
        struct = doc.struct_typedefs[0]
        self.assertEqual(struct.name, "Example1")
        self.assertEqual([d.name for d in struct.members], ["f", "m"])
        self.assertEqual([str(d.type) for d in struct.members], ["Float", "Map[String,Int]"])
        self.assertIsInstance(struct.member_types["m"], Type.Map)

        # task
        task = doc.tasks[0]
        self.assertEqual(task.name, "hello")
        self.assertEqual(
            [str(d) for d in task.inputs], ["String who", "Int? times = 1", "Array[File]+ files"]
        )
        self.assertTrue(task.inputs[1].type.optional)
        self.assertTrue(task.inputs[2].type.nonempty)
        self.assertEqual([d.name for d in task.postinputs], ["greeting"])
        self.assertEqual([d.name for d in task.outputs], ["out", "p"])
        self.assertEqual(str(task.outputs[1].type), "Pair[Int,String]")
        self.assertEqual(list(task.runtime), ["docker", "cpu"])
        self.assertEqual(task.runtime["cpu"], Expr.Int(_pos, 2))
        self.assertEqual(
            {k: v.json for k, v in task.meta.items()},
            {
                "author": "someone",
                "release": 1.5,
                "tags": ["a", "b"],
                "nested": {"x": None, "y": -3, "z": True, "w": 16},
            },
        )
        self.assertIsInstance(task.meta["nested"], Meta.Object)
        self.assertEqual(task.meta["nested"].members["w"].radix, 16)
        self.assertEqual(task.parameter_meta["who"], Meta.String(_pos, "name to greet"))

        # command
        command = task.command
        self.assertTrue(command.heredoc)
        self.assertEqual(len(command.parts), 5)
        self.assertEqual(command.parts[0], 'echo "')
        self.assertEqual(command.parts[1].expr, Expr.Ident(_pos, "greeting"))
        self.assertEqual(command.parts[2], '"\nfor f in ')
        self.assertEqual(command.parts[3].options, {"sep": " "})
        self.assertEqual(command.parts[4], '; do\n    wc -l "$f"\ndone')

        # workflow
        wf = doc.workflow
        self.assertEqual(wf.name, "main")
        self.assertEqual([d.name for d in wf.inputs], ["names", "m1", "flag"])
        m1 = wf.inputs[1].expr
        self.assertEqual(
            [(k.value, v.value) for k, v in m1.items], [(1, True), (2, False)]
        )
        self.assertEqual(
            [type(elt) for elt in wf.body],
            [Tree.Decl, Tree.Scatter, Tree.Conditional, Tree.Call],
        )
        self.assertEqual(wf.body[0].expr.struct_type_name, "Example1")
        self.assertEqual([k for k, _ in wf.body[0].expr.members], ["f", "m"])

        scatter = wf.body[1]
        self.assertEqual(scatter.variable, "name")
        self.assertEqual(scatter.expr, Expr.Ident(_pos, "names"))
        self.assertEqual(scatter.body[0].callee_id, ["hello"])
        self.assertEqual(
            scatter.body[0].inputs,
            [("who", Expr.Ident(_pos, "name")), ("files", Expr.Array(_pos, []))],
        )

        cond = wf.body[2]
        self.assertEqual(cond.expr.operator, "&&")
        call = cond.body[0]
        self.assertEqual(call.callee_id, ["lib", "greet"])
        self.assertEqual(call.alias, "g")
        self.assertEqual(call.name, "g")
        self.assertEqual([k for k, _ in call.inputs], ["who", "files"])
        # shorthand input
        self.assertEqual(call.inputs[1], ("files", Expr.Ident(_pos, "files")))

        self.assertEqual(wf.body[3].name, "h2")
        self.assertEqual(wf.body[3].inputs, [])
        self.assertEqual([d.name for d in wf.outputs], ["outs", "first"])
        self.assertEqual(wf.outputs[0].expr, Expr.Get(_pos, Expr.Ident(_pos, "hello"), "out"))
        self.assertEqual(wf.meta["description"].json, "demo")
        self.assertEqual(wf.parameter_meta, {})

    def test_equality(self):
        doc1 = WDLAST.parse_source(hello_wdl)
        doc2 = WDLAST.parse_source(
            "\n\n# leading comment\n"
            + hello_wdl.replace("workflow main {", "workflow  main {  # main")
        )
        self.assertEqual(doc1, doc2)
        self.assertNotEqual(doc1.pos, doc2.pos)
        doc3 = WDLAST.parse_source(hello_wdl.replace("cpu: 2", "cpu: 4"))
        self.assertNotEqual(doc1, doc3)

    def test_immutable(self):
        doc = WDLAST.parse_source(hello_wdl)
        with self.assertRaises(AttributeError):
            doc.tasks[0].name = "bogus"

    def test_threads(self):
        expected = WDLAST.parse_source(hello_wdl)
        fes = WDLAST.front_ends()
        with mock.patch.dict(_parser._lark_cache, clear=True):
            # parsers are compiled on first use, from whichever thread gets there first
            with futures.ThreadPoolExecutor(max_workers=8) as pool:
                results = list(
                    pool.map(
                        lambda i: WDLAST.parse_source(hello_wdl, front_end=fes[i % len(fes)]),
                        range(48),
                    )
                )
            self.assertEqual(sorted(_parser._lark_cache), sorted(fes))
        self.assertEqual(len(results), 48)
        for doc in results:
            self.assertEqual(doc, expected)
            self.assertEqual(doc.tasks[0].command.parts[4], '; do\n    wc -l "$f"\ndone')

    def test_minimal(self):
        doc = parse_all("version 1.0")
        self.assertEqual(doc.version.identifier, "1.0")
        self.assertEqual(doc.body, [])
        self.assertIsNone(doc.workflow)
        doc = parse_all("version 1.2\nworkflow w {}\n")
        self.assertEqual(doc.workflow.name, "w")
        self.assertEqual(doc.workflow.inputs, [])
        self.assertEqual(doc.workflow.outputs, [])

    def test_call_inputs(self):
        doc = parse_all(
            """
            version 1.0
            workflow w {
                call t
                call t as t2 {}
                call t as t3 { input: }
                call t as t4 { x, y = 1, x }
            }
            """
        )
        calls = doc.workflow.body
        self.assertEqual([c.name for c in calls], ["t", "t2", "t3", "t4"])
        self.assertEqual([c.inputs for c in calls[:3]], [[], [], []])
        # duplicates are kept as written
        self.assertEqual([k for k, _ in calls[3].inputs], ["x", "y", "x"])

    def test_nested_sections(self):
        doc = parse_all(
            """
            version 1.0
            workflow w {
                input {
                    Array[Array[Int]] xss
                }
                scatter (xs in xss) {
                    scatter (x in xs) {
                        if (x > 0) {
                            Int y = x * 2
                        }
                    }
                }
            }
            """
        )
        outer = doc.workflow.body[0]
        inner = outer.body[0]
        self.assertEqual((outer.variable, inner.variable), ("xs", "x"))
        self.assertEqual(inner.body[0].body[0].name, "y")
        self.assertEqual(str(doc.workflow.inputs[0].type), "Array[Array[Int]]")

    def test_types(self):
        doc = parse_all(
            """
            version 1.1
            struct S {
                Int a
                Float? b
                Array[String]+? c
                Map[String, Array[File?]] d
                Pair[Boolean,Directory] e
                Object f
                Other g
            }
            """
        )
        members = doc.struct_typedefs[0].members
        self.assertEqual(
            [str(d.type) for d in members],
            [
                "Int",
                "Float?",
                "Array[String]+?",
                "Map[String,Array[File?]]",
                "Pair[Boolean,Directory]",
                "Object",
                "Other",
            ],
        )
        self.assertIsInstance(members[2].type, Type.Optional)
        self.assertIsInstance(members[2].type.wrapped_type, Type.Array)
        self.assertIsInstance(members[6].type, Type.StructInstance)
        self.assertEqual(members[6].type.type_name, "Other")

    def test_positions(self):
        txt = "version 1.0\n# héllo\nworkflow w {}\n"
        for fe in WDLAST.front_ends():
            doc = WDLAST.parse_source(txt, uri="x.wdl", abspath="/tmp/x.wdl", front_end=fe)
            pos = doc.workflow.pos
            self.assertEqual((pos.uri, pos.abspath), ("x.wdl", "/tmp/x.wdl"))
            self.assertEqual((pos.line, pos.column, pos.end_line, pos.end_column), (3, 1, 3, 14))
            # byte offsets count the two-byte é
            self.assertEqual((pos.offset, pos.end_offset), (21, 34))
            self.assertEqual(doc.version.pos.offset, 0)


class TestCommand(unittest.TestCase):
    def test_brace(self):
        doc = parse_all(
            """
            version 1.0
            task t {
                input {
                    String s
                }
                command {
                    echo ${s} ~{s}
                      echo "$HOME" ~user
                }
            }
            """
        )
        command = doc.tasks[0].command
        self.assertFalse(command.heredoc)
        self.assertEqual(len(command.parts), 5)
        self.assertEqual(command.parts[0], "echo ")
        self.assertEqual(command.parts[1].expr, Expr.Ident(_pos, "s"))
        self.assertEqual(command.parts[2], " ")
        self.assertEqual(command.parts[4], '\n  echo "$HOME" ~user')

    def test_heredoc_verbatim(self):
        doc = parse_all(
            "version 1.0\ntask t {\n  command <<<\n    printf 'a\\tb' > out\n\n    cat ~{x}  >>>\n}\n"
        )
        command = doc.tasks[0].command
        # escape sequences are left for the shell; blank lines are kept
        self.assertEqual(command.parts[0], "printf 'a\\tb' > out\n\ncat ")
        self.assertEqual(command.parts[1].expr, Expr.Ident(_pos, "x"))
        self.assertEqual(command.parts[2], "  ")
        self.assertEqual(str(command), "printf 'a\\tb' > out\n\ncat ~{x}  ")

    def test_placeholder_indentation(self):
        doc = parse_all(
            "version 1.0\ntask t {\n  command <<<\n      ~{x}\n        y\n  >>>\n}\n"
        )
        parts = doc.tasks[0].command.parts
        self.assertEqual(parts[0].expr, Expr.Ident(_pos, "x"))
        self.assertEqual(parts[1], "\n  y")

    def test_empty(self):
        doc = parse_all("version 1.0\ntask t {\n  command {}\n}\n")
        self.assertEqual(doc.tasks[0].command.parts, [])
        doc = parse_all("version 1.0\ntask t {\n  command <<<\n  >>>\n}\n")
        self.assertEqual(doc.tasks[0].command.parts, [])

    def test_mixed_indentation(self):
        txt = "version 1.0\ntask t {\n  command <<<\n\techo a\n    echo b\n  >>>\n}\n"
        for fe in WDLAST.front_ends():
            with self.assertLogs("wdlast", level="WARNING") as logs:
                doc = WDLAST.parse_source(txt, front_end=fe)
            self.assertTrue(any("mixes tabs and spaces" in msg for msg in logs.output))
            self.assertEqual(doc.tasks[0].command.parts, ["\techo a\n    echo b"])

    def test_duplicate_runtime_key(self):
        txt = "version 1.0\ntask t {\n  command {}\n  runtime {\n    cpu: 1\n    cpu: 2\n  }\n}\n"
        for fe in WDLAST.front_ends():
            with self.assertLogs("wdlast", level="WARNING") as logs:
                doc = WDLAST.parse_source(txt, front_end=fe)
            self.assertTrue(any("duplicate key" in msg for msg in logs.output))
            self.assertEqual(doc.tasks[0].runtime, {"cpu": Expr.Int(_pos, 2)})


class TestErrors(unittest.TestCase):
    def assertFails(self, exn_class, txt, line=None):
        for fe in WDLAST.front_ends():
            with self.subTest(front_end=fe):
                with self.assertRaises(exn_class) as ctx:
                    WDLAST.parse_source(txt, front_end=fe)
                if line is not None:
                    self.assertEqual(ctx.exception.pos.line, line)
                self.assertIsInstance(ctx.exception, Error.ParseError)
        return ctx.exception

    def test_versions(self):
        exn = self.assertFails(Error.MultipleVersions, "version 1.0\nversion 1.1\n", 2)
        self.assertIsInstance(exn, Error.ValidationError)
        self.assertEqual(exn.node.identifier, "1.1")
        self.assertFails(
            Error.MisplacedVersion, "struct A {\n  Int x\n}\nversion 1.0\n", 4
        )
        exn = self.assertFails(Error.MissingVersion, "\n\ntask t {\n  command {}\n}\n", 3)
        self.assertEqual((exn.pos.column, exn.pos.offset, exn.pos.end_offset), (1, 2, 2))
        self.assertFails(Error.MissingVersion, "", 1)
        self.assertFails(Error.MissingVersion, "# just a comment\n", 1)
        self.assertFails(Error.UnsupportedVersion, "version draft-2\n", 1)
        self.assertFails(Error.UnsupportedVersion, "version 2.0\n", 1)

    def test_missing_initializer(self):
        exn = self.assertFails(
            Error.MissingInitializer,
            "version 1.0\nworkflow w {\n  output {\n    Int a = 1\n    String s\n  }\n}\n",
            5,
        )
        self.assertEqual(exn.node.name, "s")
        self.assertFails(
            Error.MissingInitializer,
            "version 1.0\ntask t {\n  command {}\n  output {\n    File f\n  }\n}\n",
            5,
        )

    def test_lone_commas(self):
        self.assertFails(Error.SyntaxError, "version 1.0\nworkflow w {\n  meta {,}\n}\n", 3)
        self.assertFails(Error.SyntaxError, "version 1.0\nworkflow w {\n  meta {\n    a: [,]\n  }\n}\n", 4)
        self.assertFails(Error.SyntaxError, "version 1.0\nworkflow w {\n  call t { , }\n}\n", 3)
        doc = parse_all(
            "version 1.0\nworkflow w {\n  meta {\n    a: [1,],\n  }\n  call t { x, }\n}\n"
        )
        self.assertEqual(doc.workflow.meta["a"].json, [1])
        self.assertEqual([k for k, _ in doc.workflow.body[0].inputs], ["x"])

    def test_duplicates(self):
        self.assertFails(
            Error.MultipleDefinitions,
            "version 1.0\nstruct A {\n  Int x\n  String x\n}\n",
            4,
        )
        self.assertFails(
            Error.MultipleDefinitions,
            'version 1.0\nimport "a.wdl"\n  alias S as T\n  alias S as U\n',
            4,
        )
        self.assertFails(
            Error.MultipleDefinitions, "version 1.0\nworkflow a {}\nworkflow b {}\n", 3
        )
        self.assertFails(
            Error.MultipleDefinitions,
            "version 1.0\ntask t {\n  input {}\n  command {}\n  input {}\n}\n",
            5,
        )
        self.assertFails(
            Error.MultipleDefinitions,
            "version 1.0\nworkflow w {\n  meta {}\n  meta {}\n}\n",
            4,
        )
        self.assertFails(
            Error.MultipleDefinitions,
            'version 1.0\nworkflow w {\n  meta {\n    a: 1\n    a: "x"\n  }\n}\n',
            5,
        )

    def test_invalid_types(self):
        for decl in ["Array[Int,Int] x", "Array x", "Int+ x", "Int[String] x", "Map[Int] x"]:
            with self.subTest(decl=decl):
                self.assertFails(
                    Error.InvalidType, "version 1.0\nstruct A {\n  " + decl + "\n}\n", 3
                )

    def test_import_namespace(self):
        self.assertFails(Error.SyntaxError, 'version 1.0\nimport "lib/1st.wdl"\n', 2)
        self.assertFails(Error.SyntaxError, 'version 1.0\nimport "lib/input.wdl"\n', 2)
        doc = parse_all('version 1.0\nimport "lib/1st.wdl" as first\n')
        self.assertEqual(doc.imports[0].namespace, "first")

    def test_keywords(self):
        self.assertFails(Error.SyntaxError, "version 1.0\nworkflow w {\n  Int call = 1\n}\n", 3)
        self.assertFails(Error.SyntaxError, "version 1.0\nstruct input {\n  Int x\n}\n", 2)

    def test_syntax(self):
        # unterminated string literal
        exn = self.assertFails(
            Error.SyntaxError, 'version 1.0\nworkflow w {\n  String s = "abc\n}\n'
        )
        self.assertEqual(exn.kind, "syntax")
        self.assertGreaterEqual(exn.pos.line, 3)
        # unmatched braces
        self.assertFails(Error.SyntaxError, "version 1.0\nworkflow w {\n}\n}\n", 4)
        exn = self.assertFails(
            Error.SyntaxError, "version 1.0\ntask t {\n  command {\n    echo hi\n  }\n"
        )
        self.assertGreaterEqual(exn.pos.line, 5)
        # unbound workflow body declaration; task without command
        self.assertFails(Error.SyntaxError, "version 1.0\nworkflow w {\n  Int x\n}\n", 4)
        self.assertFails(Error.SyntaxError, "version 1.0\ntask t {\n  Int x = 1\n}\n", 4)
        self.assertFails(Error.SyntaxError, "version 1.0\ntask t {\n  String s\n  command {}\n}\n", 4)
        exn = self.assertFails(Error.SyntaxError, "version 1.0\nworkflow w { @ }\n", 2)
        self.assertEqual(exn.pos.column, 14)
        self.assertEqual((exn.pos.end_line, exn.pos.end_column), (2, 15))
        self.assertIsInstance(exn.__cause__, lark.exceptions.UnexpectedInput)

    def test_syntax_spans(self):
        # an unexpected word is spanned up to the following whitespace, however lark lexed it
        for fe in WDLAST.front_ends():
            with self.subTest(front_end=fe):
                with self.assertRaises(Error.SyntaxError) as ctx:
                    WDLAST.parse_source(
                        "version 1.0\ntask t {\n  String s\n  command {}\n}\n", front_end=fe
                    )
                pos = ctx.exception.pos
                self.assertEqual((pos.line, pos.column), (4, 3))
                self.assertEqual(pos.end_line, 4)
                self.assertLessEqual(pos.end_column, 10)

                with self.assertRaises(Error.SyntaxError) as ctx:
                    WDLAST.parse_source("version 1.0\nworkflow w {\n  Int x = 1 $$ 2\n}\n", front_end=fe)
                pos = ctx.exception.pos
                self.assertEqual((pos.line, pos.column, pos.end_line), (3, 13, 3))
                self.assertLessEqual(pos.end_column, 15)


class TestFiles(unittest.TestCase):
    def test_parse_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fn = os.path.join(tmpdir, "hello.wdl")
            with open(fn, "w", encoding="utf-8") as outfile:
                outfile.write(hello_wdl)
            doc = WDLAST.parse_file(fn)
            self.assertEqual(doc.pos.uri, fn)
            self.assertEqual(doc.pos.abspath, os.path.abspath(fn))
            self.assertEqual(doc.tasks[0].pos.uri, fn)
            self.assertEqual(doc, WDLAST.parse_source(hello_wdl))
            self.assertEqual(doc, WDLAST.parse_file(fn, front_end="flat"))

    def test_read_errors(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            missing = os.path.join(tmpdir, "missing.wdl")
            with self.assertRaises(Error.ReadError) as ctx:
                WDLAST.parse_file(missing)
            self.assertEqual(ctx.exception.kind, "io")
            self.assertIsInstance(ctx.exception.__cause__, OSError)
            self.assertEqual(ctx.exception.pos.uri, missing)
            self.assertIn(missing, str(ctx.exception))

            with self.assertRaises(Error.ReadError) as ctx:
                WDLAST.parse_file(tmpdir)
            self.assertIsInstance(ctx.exception.__cause__, OSError)

            binary = os.path.join(tmpdir, "binary.wdl")
            with open(binary, "wb") as outfile:
                outfile.write(b"version 1.0\n\xff\xfe\n")
            with self.assertRaises(Error.ReadError) as ctx:
                WDLAST.parse_file(binary)
            self.assertIsInstance(ctx.exception.__cause__, UnicodeDecodeError)

    def test_syntax_error_uri(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            fn = os.path.join(tmpdir, "bad.wdl")
            with open(fn, "w") as outfile:
                outfile.write("version 1.0\nworkflow {\n")
            with self.assertRaises(Error.SyntaxError) as ctx:
                WDLAST.parse_file(fn)
            self.assertEqual(ctx.exception.pos.uri, fn)
            self.assertEqual(ctx.exception.pos.line, 2)
