"""End-to-end tests: class components in, function components out."""

from declassify import transform_file, transform_source
from declassify.core.pipeline import DeclassifyTransformer
from declassify.setting import DeclassifySettings


# =========================================================================
# Sample source fixtures
# =========================================================================

COUNTER = '''import React from "react";

type Props = {
  by: number;
};

type State = {
  counter: number;
};

export class C extends React.Component<Props, State> {
  state = {
    counter: 0,
  };

  render() {
    return (
      <>
        <div>{this.state.counter}</div>
        <button onClick={() => this.onClick()}>
          Increment
        </button>
      </>
    );
  }

  onClick() {
    this.setState({ counter: this.state.counter + this.props.by });
  }
}
'''

DEFAULT_PROPS = '''import React from "react";

type Props = {
  text: string;
  color?: string;
  size: number | string;
};

class Label extends React.Component<Props> {
  static defaultProps = { color: "red", size: 12 };

  render() {
    const { text, color } = this.props;
    return <div style={{ color, fontSize: this.props.size }}>{text}</div>;
  }
}
'''

REFS = '''import React from "react";

class Focus extends React.Component {
  button = React.createRef();
  clicks = 0;

  onClick = () => {
    this.clicks += 1;
    this.button.current.focus();
  };

  render() {
    return <button ref={this.button} onClick={this.onClick} />;
  }
}
'''

DEFAULT_EXPORT = '''import React from "react";

export default class Page extends React.Component {
  render() {
    return <div />;
  }
}
'''

ANONYMOUS_EXPORT = '''import React from "react";

export default class extends React.Component {
  render() {
    return <div>{this.props.children}</div>;
  }
}
'''

BIND = '''import React from "react";

class Button extends React.Component {
  constructor(props) {
    super(props);
    this.handle = this.handle.bind(this);
  }

  handle() { console.log("hi"); }

  render() {
    const h = this.handle.bind(this);
    return <button onClick={this.handle} data-h={h} />;
  }
}
'''

COMPUTED_KEY = '''import React from "react";

class Form extends React.Component {
  state = { a: 1 };

  render() {
    this.setState({ [key]: 1 });
    return null;
  }
}
'''

NOT_A_COMPONENT = '''class Store extends Base {
  render() {
    return this.value;
  }
}

class Plain {}
'''

CAPTURE = '''import React from "react";

const count = 10;

class Counter extends React.Component {
  state = { count: 0 };

  render() {
    return this.state.count + count;
  }
}
'''

NAMED_IMPORTS = '''import { Component } from "react";

class Toggle extends Component<{}> {
  state = { on: false };
  node = null;

  render() {
    return <input checked={this.state.on} />;
  }
}
'''

MULTI_SET_STATE = '''import React from "react";

class Pair extends React.Component {
  state = { a: 1, b: 2 };

  reset() {
    this.setState({ a: 0, b: 0 });
  }

  render() {
    return this.state.a + this.state.b;
  }
}
'''

NESTED_COMPONENT = '''import React from "react";

class Outer extends React.Component {
  render() {
    class Inner extends React.Component {
      render() {
        return null;
      }
    }
    return <Inner />;
  }
}
'''

UMD_GLOBAL = '''class Hello extends React.Component {
  render() {
    return <p>{this.props.name}</p>;
  }
}
'''

TEMPLATE_LITERAL = '''import React from "react";

class Doc extends React.Component {
  render() {
    const text = `first
second`;
    return text;
  }
}
'''


TYPEOF_LOCAL = '''import React from "react";

class Tag extends React.Component {
  state = { a: 0 };

  render() {
    const a = "x";
    const b: typeof a = a;
    return <span title={b}>{this.state.a}</span>;
  }
}
'''

UNDEFINED_PROPS = '''import React from "react";

const noop = () => {};

type Props = {
  a: number | undefined;
  b?: string | undefined;
  c?: (() => void) | undefined;
  d: () => void;
  e?: (string | undefined);
};

class Widget extends React.Component<Props> {
  static defaultProps = { a: 1, b: "b", c: noop, d: noop, e: "e" };

  render() {
    const { a, b, c, d, e } = this.props;
    return <div onClick={c} onBlur={d}>{a}{b}{e}</div>;
  }
}
'''

TYPED_MEMBERS = '''import React from "react";

class Panel extends React.Component {
  div = React.createRef<HTMLDivElement>();
  n: number = 3;
  handle: (x: number) => void = function (x) {
    console.log(x);
  };

  async load(): Promise<string> {
    return "ok";
  }

  render() {
    this.handle(this.n);
    return <div ref={this.div} onClick={() => this.load()}>{this.n}</div>;
  }
}
'''


TABBED = (
    'import React from "react";\n'
    "\n"
    "class Tabs extends React.Component {\n"
    "\tstate = { n: 0 };\n"
    "\n"
    "\trender() {\n"
    "\t\treturn <b>{this.state.n}</b>;\n"
    "\t}\n"
    "}\n"
)

SINGLE_LINE = '''import React from "react";

class Line extends React.Component {
  static defaultProps = { a: 1 };

  label() { const { a } = this.props; return a; }

  render() { const { a } = this.props; return <i title={this.label()}>{a}</i>; }
}
'''

UNICODE_STATE = '''import React from "react";

class Greeting extends React.Component {
  state = { ñ: 1 };

  render() {
    return <p onClick={() => this.setState({ ñ: 2 })}>{this.state.ñ}</p>;
  }
}
'''


def squash(text):
    return " ".join(text.split())


# =========================================================================
# Tests
# =========================================================================


class TestCounter:
    def test_counter(self):
        result = transform_source(COUNTER, "Counter.tsx")
        code = squash(result.code)
        assert result.changed
        assert "export const C: React.FC<Props> = (props) => {" in code
        assert "const [counter, setCounter] = React.useState<number>(0);" in code
        assert "function onClick() { setCounter(counter + props.by); }" in code
        assert "<div>{counter}</div>" in code
        assert "onClick={() => onClick()}" in code
        assert "this." not in result.code
        assert "extends" not in result.code

    def test_outcome(self):
        result = transform_source(COUNTER, "Counter.tsx")
        assert [(o.name, o.status) for o in result.outcomes] == [("C", "transformed")]
        assert result.errors == []

    def test_indentation(self):
        lines = transform_source(COUNTER, "Counter.tsx").code.splitlines()
        assert "  const [counter, setCounter] = React.useState<number>(0);" in lines
        assert "  return (" in lines
        assert "  );" in lines
        assert "};" in lines


class TestProps:
    def test_defaults_move_into_destructuring(self):
        code = squash(transform_source(DEFAULT_PROPS, "Label.tsx").code)
        assert 'const { text, color = "red", size = 12 } = props;' in code
        assert "fontSize: size" in code
        assert "defaultProps" not in code
        assert "const Label: React.FC<Props> = (props) => {" in code

    def test_defaulted_types_become_optional(self):
        code = transform_source(DEFAULT_PROPS, "Label.tsx").code
        assert "text: string;" in code
        assert "color?: string | undefined;" in code
        assert "size?: number | string | undefined;" in code

    def test_umd_global(self):
        code = squash(transform_source(UMD_GLOBAL, "Hello.jsx").code)
        assert "const Hello = (props) => { return <p>{props.name}</p>; };" in code


class TestRefs:
    def test_refs(self):
        code = squash(transform_source(REFS, "Focus.jsx").code)
        assert "const button = React.useRef(null);" in code
        assert "const clicks = React.useRef(0);" in code
        assert "const onClick = () => { clicks.current += 1; button.current.focus(); };" in code
        assert "<button ref={button} onClick={onClick} />" in code
        assert "const Focus = () => {" in code


class TestExports:
    def test_default_export(self):
        result = transform_source(DEFAULT_EXPORT, "Page.jsx")
        assert result.code == (
            'import React from "react";\n'
            "\n"
            "const Page = () => {\n"
            "  return <div />;\n"
            "};\n"
            "export default Page;\n"
        )

    def test_anonymous_default_export(self):
        code = squash(transform_source(ANONYMOUS_EXPORT, "Anon.jsx").code)
        assert "export default (props) => { return <div>{props.children}</div>; };" in code


class TestBind:
    def test_bind_collapses(self):
        code = squash(transform_source(BIND, "Button.jsx").code)
        assert 'function handle() { console.log("hi"); }' in code
        assert "const h = handle;" in code
        assert "onClick={handle}" in code
        assert "bind" not in code
        assert "const Button = () => {" in code


class TestDiagnostics:
    def test_computed_set_state_key(self):
        result = transform_source(COMPUTED_KEY, "Form.jsx")
        assert result.changed
        assert (
            "/* react-declassify-disable Cannot perform transformation: "
            "Computed keys in setState are not supported */\nclass Form extends React.Component {"
        ) in result.code
        assert [(o.name, o.status) for o in result.outcomes] == [("Form", "failed")]
        assert result.outcomes[0].line == 7

    def test_rerun_is_idempotent(self):
        first = transform_source(COMPUTED_KEY, "Form.jsx")
        second = transform_source(first.code, "Form.jsx")
        assert not second.changed
        assert second.code == first.code
        assert [o.status for o in second.outcomes] == ["disabled"]

    def test_non_components_untouched(self):
        result = transform_source(NOT_A_COMPONENT, "store.js")
        assert not result.changed
        assert result.code == NOT_A_COMPONENT
        assert result.outcomes == []


class TestCaptureSafety:
    def test_state_avoids_outer_binding(self):
        code = squash(transform_source(CAPTURE, "Counter.jsx").code)
        assert "const [count2, setCount2] = React.useState(0);" in code
        assert "return count2 + count;" in code
        assert "const count = 10;" in code


class TestNamedImports:
    def test_hooks_are_imported(self):
        result = transform_source(NAMED_IMPORTS, "Toggle.tsx")
        code = squash(result.code)
        assert 'import { Component, useState, useRef, FC } from "react";' in code
        assert "const Toggle: FC<{}> = () => {" in code
        assert "const [on, setOn] = useState(false);" in code
        assert "const node = useRef(null);" in code
        assert "checked={on}" in code


class TestSetState:
    def test_several_keys_become_several_calls(self):
        code = transform_source(MULTI_SET_STATE, "Pair.jsx").code
        assert "    setA(0);\n    setB(0);\n" in code
        assert "return a + b;" in code


class TestNesting:
    def test_nested_class_left_to_outer_rewrite(self):
        result = transform_source(NESTED_COMPONENT, "Outer.jsx")
        assert [(o.name, o.status) for o in result.outcomes] == [("Outer", "transformed")]
        code = squash(result.code)
        assert "const Outer = () => {" in code
        assert "class Inner extends React.Component" in code


class TestTemplateLiterals:
    def test_multiline_template_kept(self):
        code = transform_source(TEMPLATE_LITERAL, "Doc.jsx").code
        assert "  const text = `first\nsecond`;\n" in code


class TestEntryPoints:
    def test_transform_file_does_not_write(self, tmp_path):
        path = tmp_path / "Page.jsx"
        path.write_text(DEFAULT_EXPORT)
        result = transform_file(str(path))
        assert result.changed
        assert path.read_text() == DEFAULT_EXPORT

    def test_custom_props_name(self):
        transformer = DeclassifyTransformer(DeclassifySettings(props_param_name="p"))
        code = squash(transformer.transform_source(UMD_GLOBAL, "Hello.jsx").code)
        assert "const Hello = (p) => { return <p>{p.name}</p>; };" in code


class TestTypeQueries:
    def test_renamed_local_follows_into_typeof(self):
        code = transform_source(TYPEOF_LOCAL, "Tag.tsx").code
        assert '  const a2 = "x";\n' in code
        assert "  const b: typeof a2 = a2;\n" in code
        assert "typeof a;" not in code
        assert "const [a, setA] = React.useState(0);" in code
        assert "<span title={b}>{a}</span>" in code


class TestTypedMembers:
    def test_undefined_is_added_once(self):
        lines = [line.strip() for line in transform_source(UNDEFINED_PROPS, "Widget.tsx").code.splitlines()]
        assert "a?: number | undefined;" in lines
        assert "b?: string | undefined;" in lines
        assert "c?: (() => void) | undefined;" in lines
        assert "d?: (() => void) | undefined;" in lines
        assert "e?: (string | undefined);" in lines
        for prefix in ("a?:", "b?:", "c?:", "d?:", "e?:"):
            (line,) = [line for line in lines if line.startswith(prefix)]
            assert line.count("undefined") == 1

    def test_typed_refs(self):
        code = squash(transform_source(TYPED_MEMBERS, "Panel.tsx").code)
        assert "const div = React.useRef<HTMLDivElement>(null);" in code
        assert "const n = React.useRef<number>(3);" in code
        assert "handle(n.current);" in code
        assert "<div ref={div} onClick={() => load()}>{n.current}</div>" in code

    def test_typed_function_field(self):
        code = squash(transform_source(TYPED_MEMBERS, "Panel.tsx").code)
        assert "const handle: (x: number) => void = function(x) { console.log(x); };" in code

    def test_async_method(self):
        code = squash(transform_source(TYPED_MEMBERS, "Panel.tsx").code)
        assert 'async function load(): Promise<string> { return "ok"; }' in code
        assert "this." not in code


class TestSourceStyle:
    def test_tabs_are_kept(self):
        code = transform_source(TABBED, "Tabs.jsx").code
        assert code == (
            'import React from "react";\n'
            "\n"
            "const Tabs = () => {\n"
            "\tconst [n, setN] = React.useState(0);\n"
            "\treturn <b>{n}</b>;\n"
            "};\n"
        )

    def test_crlf_is_kept(self):
        result = transform_source(DEFAULT_EXPORT.replace("\n", "\r\n"), "Page.jsx")
        assert result.code == (
            'import React from "react";\r\n'
            "\r\n"
            "const Page = () => {\r\n"
            "  return <div />;\r\n"
            "};\r\n"
            "export default Page;\r\n"
        )

    def test_crlf_disable_comment(self):
        code = transform_source(COMPUTED_KEY.replace("\n", "\r\n"), "Form.jsx").code
        assert "setState are not supported */\r\nclass Form" in code
        assert "\n" not in code.replace("\r\n", "")

    def test_single_line_bodies_lose_removed_statements_cleanly(self):
        code = transform_source(SINGLE_LINE, "Line.jsx").code
        lines = code.splitlines()
        assert "  const { a = 1 } = props;" in lines
        assert "  function label() { return a; }" in lines
        assert "  return <i title={label()}>{a}</i>;" in lines
        assert "   return" not in code
        assert "{  return" not in code

    def test_unicode_state_key(self):
        code = squash(transform_source(UNICODE_STATE, "Greeting.jsx").code)
        assert "const [ñ, setÑ] = React.useState(1);" in code
        assert "setÑ(2)" in code
        assert "{ñ}</p>" in code
        assert "_ñ" not in code
