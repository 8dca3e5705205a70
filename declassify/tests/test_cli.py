"""Tests for the command line interface."""

import pytest
from declassify.__main__ import iter_source_files, main
from declassify.setting import DeclassifySettings


COMPONENT = '''import React from "react";

class Hello extends React.Component {
  render() {
    return <p>{this.props.name}</p>;
  }
}
'''

PLAIN = '''export const answer = 42;
'''


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "Hello.jsx").write_text(COMPONENT)
    (tmp_path / "src" / "plain.js").write_text(PLAIN)
    (tmp_path / "src" / "notes.md").write_text("# notes")
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib" / "Hello.jsx").write_text(COMPONENT)
    return tmp_path


class TestFileWalking:
    def test_skips_directories_and_extensions(self, project):
        files = list(iter_source_files([str(project)], DeclassifySettings()))
        names = sorted(f[len(str(project)) + 1:] for f in files)
        assert names == ["src/Hello.jsx", "src/plain.js"]

    def test_skip_list_comes_from_settings(self, project):
        settings = DeclassifySettings(skip_directories=["src"])
        files = list(iter_source_files([str(project)], settings))
        names = [f[len(str(project)) + 1:] for f in files]
        assert names == ["node_modules/lib/Hello.jsx"]


class TestMain:
    def test_single_file_prints_result(self, project, capsys):
        path = project / "src" / "Hello.jsx"
        assert main([str(path)]) == 0
        out = capsys.readouterr().out
        assert "const Hello = (props) => {" in out
        assert path.read_text() == COMPONENT

    def test_write(self, project):
        assert main([str(project), "--write"]) == 0
        assert "const Hello = (props) => {" in (project / "src" / "Hello.jsx").read_text()
        assert (project / "src" / "plain.js").read_text() == PLAIN
        assert (project / "node_modules" / "lib" / "Hello.jsx").read_text() == COMPONENT

    def test_write_keeps_crlf(self, project):
        path = project / "src" / "Hello.jsx"
        path.write_bytes(COMPONENT.replace("\n", "\r\n").encode("utf-8"))
        assert main([str(path), "--write"]) == 0
        data = path.read_bytes()
        assert b"const Hello = (props) => {\r\n" in data
        assert b"\n" not in data.replace(b"\r\n", b"")

    def test_check(self, project, capsys):
        assert main([str(project), "--check"]) == 1
        assert "would transform" in capsys.readouterr().out
        assert (project / "src" / "Hello.jsx").read_text() == COMPONENT

    def test_check_clean(self, project):
        assert main([str(project / "src" / "plain.js"), "--check"]) == 0

    def test_config(self, project, tmp_path, capsys):
        config = tmp_path / "custom.yaml"
        config.write_text("declassify:\n  props_param_name: p\n")
        assert main([str(project / "src" / "Hello.jsx"), "--config", str(config)]) == 0
        assert "const Hello = (p) => {" in capsys.readouterr().out

    def test_missing_path(self, tmp_path):
        with pytest.raises(SystemExit):
            main([str(tmp_path / "missing.jsx")])
