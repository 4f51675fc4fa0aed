"""Tests for the five relationship finders, one class per finder."""
from linelens.analyzer.class_member import ClassMemberRelationshipFinder
from linelens.analyzer.control_flow import ControlFlowRelationshipFinder
from linelens.analyzer.function_finder import FunctionRelationshipFinder
from linelens.analyzer.import_finder import IMPORT_SCAN_LIMIT, ImportRelationshipFinder
from linelens.analyzer.models import RelationshipType
from linelens.analyzer.variable_finder import VariableRelationshipFinder


class TestVariableFinder:
    finder = VariableRelationshipFinder()

    def test_declaration_to_uses(self, make_document):
        doc = make_document([
            "let total = 0;",
            "for (const item of items) {",
            "  total = total + item.price;",
            "}",
            "print(total);",
        ])
        assert self.finder.find(doc, 0) == {2, 4}

    def test_operands_link_back_to_declarations(self, make_document):
        doc = make_document(["const x = 1;", "let y = 2;", "console.log(x + y);"])
        assert self.finder.find(doc, 2) == {0, 1}

    def test_no_scope_awareness(self, make_document):
        doc = make_document([
            "function a() { const count = 1; }",
            "function b() { const count = 2; }",
        ])
        assert self.finder.find(doc, 0) == {1}, \
            "A reused name in another function is still reported"

    def test_dollar_identifiers(self, make_document):
        doc = make_document(["const $el = $('#app');", "$el.hide();"])
        assert self.finder.find(doc, 1) == {0}

    def test_line_without_identifiers(self, make_document):
        doc = make_document(["}", "x = 1;"])
        assert self.finder.find(doc, 0) == set()

    def test_relationship_type(self):
        assert self.finder.relationship_type is RelationshipType.VARIABLE


class TestFunctionFinder:
    finder = FunctionRelationshipFinder()

    def test_call_to_declaration(self, make_document):
        doc = make_document([
            "function compute(a) {",
            "  return a * 2;",
            "}",
            "const value = compute(3);",
        ])
        assert self.finder.find(doc, 3) == {0}

    def test_every_definition_shape(self, make_document):
        doc = make_document([
            "function a() {}",
            "const b = function () {};",
            "const c = () => 1;",
            "const o = { d: function () {} };",
            "e(x) => x",
            "a(); b(); c(); d(); e();",
        ])
        assert self.finder.find(doc, 5) == {0, 1, 2, 3, 4}

    def test_builtins_are_skipped(self, make_document):
        doc = make_document(["function log(x) {}", "console.log(1);"])
        assert self.finder.find(doc, 1) == set()

    def test_no_calls(self, make_document):
        doc = make_document(["const x = 1;", "function x() {}"])
        assert self.finder.find(doc, 0) == set()


class TestControlFlowFinder:
    finder = ControlFlowRelationshipFinder()

    LOOP = [
        "for (let i = 0; i < n; i++) {",
        "  if (skip(i)) {",
        "    continue;",
        "  }",
        "  if (done(i)) break;",
        "  work(i);",
        "}",
        "after();",
    ]

    def test_loop_with_break_and_continue(self, make_document):
        doc = make_document(self.LOOP)
        # break after an if on the same line is not a bare break statement
        assert self.finder.find(doc, 0) == {0, 2, 6}

    def test_continue_resolves_its_loop(self, make_document):
        doc = make_document(self.LOOP)
        assert self.finder.find(doc, 2) == {0, 2, 6}

    def test_conditional_chain(self, make_document):
        doc = make_document([
            "if (a) {",
            "  one();",
            "} else if (b) {",
            "  two();",
            "}",
            "// note",
            "else {",
            "  three();",
            "}",
            "next();",
        ])
        assert self.finder.find(doc, 0) == {0, 2, 4, 6, 8}

    def test_conditional_without_else(self, make_document):
        doc = make_document(["if (ready) {", "  go();", "}", "done();"])
        assert self.finder.find(doc, 0) == {0, 2}

    def test_else_after_several_closing_braces(self, make_document):
        doc = make_document([
            "if (a) {",
            "  if (b) {",
            "    x();",
            "  } } else {",
            "  y();",
            "}",
        ])
        assert self.finder.find(doc, 0) == {0, 3, 5}

    def test_else_prefixed_identifier_is_not_a_branch(self, make_document):
        doc = make_document(["if (a) {", "  b();", "}", "elseValue = 1;"])
        assert self.finder.find(doc, 0) == {0, 2}

    def test_try_catch_finally(self, make_document):
        doc = make_document([
            "try {",
            "  risky();",
            "} catch (e) {",
            "  handle(e);",
            "} finally {",
            "  cleanup();",
            "}",
        ])
        assert self.finder.find(doc, 0) == {0, 2, 4, 6}
        assert self.finder.find(doc, 2) == {0, 2, 4, 6}, \
            "An inline catch resolves the try it belongs to"

    def test_statement_inside_try(self, make_document):
        doc = make_document([
            "function run() {",
            "  const a = 1;",
            "  // work",
            "  try {",
            "    doWork(a);",
            "    finish();",
            "  } catch (e) {",
            "    report(e);",
            "  }",
            "}",
        ])
        assert self.finder.find(doc, 4) == {3, 6, 8}

    def test_statement_after_try_is_unrelated(self, make_document):
        doc = make_document(["try {", "  a();", "} catch (e) {", "}", "b();"])
        assert self.finder.find(doc, 4) == set()

    SWITCH = [
        "switch (kind) {",
        "  case 'a':",
        "    one();",
        "    break;",
        "  case 'b':",
        "    two();",
        "    break;",
        "  default:",
        "    three();",
        "}",
    ]

    def test_switch_with_case_labels(self, make_document):
        doc = make_document(self.SWITCH)
        assert self.finder.find(doc, 0) == {0, 1, 4, 7, 9}

    def test_case_label_resolves_its_switch(self, make_document):
        doc = make_document(self.SWITCH)
        assert self.finder.find(doc, 4) == {0, 1, 4, 7, 9}

    def test_return_to_function_definition(self, make_document):
        doc = make_document([
            "function total(items) {",
            "  let sum = 0;",
            "  return sum;",
            "}",
        ])
        assert self.finder.find(doc, 2) == {0}

    def test_plain_statement_and_comment(self, make_document):
        doc = make_document(["const a = 1;", "// a comment", "a();"])
        assert self.finder.find(doc, 0) == set()
        assert self.finder.find(doc, 1) == set()


class TestImportFinder:
    finder = ImportRelationshipFinder()

    HEADER = [
        "import { useState, useEffect as useMount } from 'react';",
        "import Default from './default';",
        "import * as utils from './utils';",
        "const fs = require('fs');",
        "export { helper } from './helper';",
        "",
        "const [v, setV] = useState(0);",
        "useMount(() => utils.run(Default, fs.readFileSync(helper())));",
    ]

    def test_categorize_imports(self, make_document):
        index = self.finder.categorize_imports(make_document(self.HEADER))

        assert index.named == {'useState': 0, 'useMount': 0}
        assert index.default == {'Default': 1}
        assert index.namespace == {'utils': 2}
        assert index.require == {'fs': 3}

    def test_every_import_kind_and_reexport(self, make_document):
        doc = make_document(self.HEADER)
        assert self.finder.find(doc, 7) == {0, 1, 2, 3, 4}

    def test_named_import(self, make_document):
        doc = make_document(self.HEADER)
        assert self.finder.find(doc, 6) == {0}

    def test_alias_binds_local_name_only(self, make_document):
        doc = make_document([
            "import { useEffect as useMount } from 'react';",
            "useEffect();",
            "useMount();",
        ])
        assert self.finder.find(doc, 1) == set()
        assert self.finder.find(doc, 2) == {0}

    def test_type_modifier_is_not_part_of_the_name(self, make_document):
        doc = make_document([
            "import { type Props, Widget } from './widget';",
            "import type { Theme } from './theme';",
            "const p: Props = Widget.defaults;",
            "const t: Theme = dark;",
        ])

        assert self.finder.categorize_imports(doc).named == {'Props': 0, 'Widget': 0, 'Theme': 1}
        assert self.finder.find(doc, 2) == {0}
        assert self.finder.find(doc, 3) == {1}

    def test_imports_below_scan_limit_are_ignored(self, make_document):
        lines = ["// filler"] * IMPORT_SCAN_LIMIT
        lines += ["import Late from 'late';", "Late();"]
        doc = make_document(lines)
        assert self.finder.find(doc, IMPORT_SCAN_LIMIT + 1) == set()


class TestClassMemberFinder:
    finder = ClassMemberRelationshipFinder()

    COUNTER = [
        "class Counter {",
        "  constructor() {",
        "    this.count = 0;",
        "  }",
        "",
        "  increment() {",
        "    this.count += 1;",
        "    this.notify();",
        "  }",
        "",
        "  notify() {",
        "    emit(this.count);",
        "  }",
        "}",
        "const count = 5;",
    ]

    def test_field_uses_within_class(self, make_document):
        doc = make_document(self.COUNTER)
        # Line 14 is outside the class body
        assert self.finder.find(doc, 6) == {0, 1, 2, 11}

    def test_method_call_to_method(self, make_document):
        doc = make_document(self.COUNTER)
        assert self.finder.find(doc, 7) == {0, 1, 10}

    def test_python_class(self, make_document):
        doc = make_document([
            "class Account:",
            "    def __init__(self, owner):",
            "        self.owner = owner",
            "",
            "    def describe(self):",
            "        return self.owner",
        ], language_id='python')
        assert self.finder.find(doc, 5) == {0, 1, 2}

    def test_outside_any_class(self, make_document):
        doc = make_document(["function f() {", "  this.x = 1;", "}"])
        assert self.finder.find(doc, 1) == set()

    def test_interface_has_no_class_body(self, make_document):
        doc = make_document(["interface Shape {", "  area(): number;", "}"])
        assert self.finder.find(doc, 1) == set()
