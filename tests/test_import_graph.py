"""
Tests for import-graph dependency extraction.
"""

from shipwright.adapters.import_graph import ImportGraphExtractor


def keys(graph, root):
    return sorted(
        p.replace(str(root.resolve()) + "/", "") for p in graph
    )


class TestImportGraphExtractor:

    def test_entry_without_local_imports(self, workspace):
        workspace.write("build/svc/main.py", "import os\nimport json\nprint(os.getcwd())\n")

        graph = ImportGraphExtractor().extract(workspace.root / "build/svc/main.py")

        assert keys(graph, workspace.root) == ["build/svc/main.py"]
        assert list(graph.values()) == [[]]

    def test_sibling_module_and_package(self, workspace):
        workspace.write("build/svc/main.py", """
            import helpers
            from pkg.sub import thing
            """)
        workspace.write("build/svc/helpers.py", "VALUE = 1\n")
        workspace.write("build/svc/pkg/__init__.py", "")
        workspace.write("build/svc/pkg/sub.py", "thing = 2\n")

        graph = ImportGraphExtractor().extract(workspace.root / "build/svc/main.py")

        assert keys(graph, workspace.root) == [
            "build/svc/helpers.py",
            "build/svc/main.py",
            "build/svc/pkg/__init__.py",
            "build/svc/pkg/sub.py",
        ]

    def test_relative_imports_are_followed_transitively(self, workspace):
        workspace.write("build/svc/main.py", "from pkg import api\n")
        workspace.write("build/svc/pkg/__init__.py", "")
        workspace.write("build/svc/pkg/api.py", "from . import models\nfrom .util import slug\n")
        workspace.write("build/svc/pkg/models.py", "")
        workspace.write("build/svc/pkg/util.py", "def slug(x):\n    return x\n")

        graph = ImportGraphExtractor().extract(workspace.root / "build/svc/main.py")

        api = str((workspace.root / "build/svc/pkg/api.py").resolve())
        assert sorted(graph[api]) == sorted([
            str((workspace.root / "build/svc/pkg/models.py").resolve()),
            str((workspace.root / "build/svc/pkg/util.py").resolve()),
        ])
        assert len(graph) == 5

    def test_cycles_terminate(self, workspace):
        workspace.write("build/svc/main.py", "import a\n")
        workspace.write("build/svc/a.py", "import b\n")
        workspace.write("build/svc/b.py", "import a\n")

        graph = ImportGraphExtractor().extract(workspace.root / "build/svc/main.py")

        assert keys(graph, workspace.root) == ["build/svc/a.py", "build/svc/b.py", "build/svc/main.py"]

    def test_search_paths_from_bundle_config(self, workspace):
        workspace.write("bundle.yaml", "search_paths:\n  - lib\n")
        workspace.write("lib/shared.py", "X = 1\n")
        workspace.write("build/svc/main.py", "import shared\n")

        graph = ImportGraphExtractor().extract(
            workspace.root / "build/svc/main.py", workspace.root / "bundle.yaml"
        )

        assert keys(graph, workspace.root) == ["build/svc/main.py", "lib/shared.py"]

    def test_unparseable_file_has_no_dependencies(self, workspace):
        workspace.write("build/svc/main.py", "import helpers\n")
        workspace.write("build/svc/helpers.py", "def broken(:\n")

        graph = ImportGraphExtractor().extract(workspace.root / "build/svc/main.py")

        helpers = str((workspace.root / "build/svc/helpers.py").resolve())
        assert graph[helpers] == []
