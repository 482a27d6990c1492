import sys
import tempfile
import unittest
from pathlib import Path

import yaml

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "packages" / "core_engine" / "src"))

from cg_core.config import (
    STARTER_CONFIG,
    config_from_dict,
    config_issues,
    load_config,
    load_config_schema,
)
from cg_core.errors import ConfigError


class ConfigTests(unittest.TestCase):
    def test_starter_config_is_valid(self) -> None:
        self.assertEqual([], config_issues(yaml.safe_load(STARTER_CONFIG)))

    def test_defaults(self) -> None:
        config = config_from_dict({"crawler_name": "Acme", "source": {"type": "metadata_file", "path": "m.csv"}})
        self.assertEqual("CluedIn.Crawling", config.namespace_root)
        self.assertEqual("CluedIn.Crawling.Acme", config.namespace)
        self.assertEqual("BaseAcmeEntity", config.base_class)
        self.assertEqual("acme", config.key_prefix)
        self.assertEqual(["dbo"], config.schema_qualifiers)
        self.assertEqual("error", config.on_duplicate_column)
        self.assertEqual(1, config.workers)
        self.assertEqual("m.csv", config.source.path)

    def test_missing_required_keys(self) -> None:
        issues = config_issues({"namespace_root": "CluedIn.Crawling"})
        self.assertEqual(2, len(issues))
        self.assertTrue(all(issue.code == "CONFIG_VALIDATION_FAILED" for issue in issues))

    def test_rejects_bad_values(self) -> None:
        data = {
            "crawler_name": "my crawler",
            "workers": 0,
            "on_duplicate_column": "merge",
            "source": {"type": "oracle"},
        }
        paths = {issue.path for issue in config_issues(data)}
        self.assertIn("/crawler_name", paths)
        self.assertIn("/workers", paths)
        self.assertIn("/on_duplicate_column", paths)
        self.assertIn("/source/type", paths)

    def test_unknown_key(self) -> None:
        data = {"crawler_name": "Acme", "source": {"type": "metadata_file", "path": "m.csv"}, "colour": "blue"}
        self.assertEqual(1, len(config_issues(data)))

    def test_file_sources_need_a_path(self) -> None:
        issues = config_issues({"crawler_name": "Acme", "source": {"type": "catalog_csv"}})
        self.assertEqual(["/source"], [issue.path for issue in issues])

    def test_sqlserver_needs_a_database(self) -> None:
        issues = config_issues({"crawler_name": "Acme", "source": {"type": "sqlserver", "host": "db"}})
        self.assertEqual(1, len(issues))
        ok = config_issues({"crawler_name": "Acme", "source": {"type": "sqlserver", "database": "AdventureWorks"}})
        self.assertEqual([], ok)

    def test_load_config_resolves_relative_paths(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "crawlgen.yaml"
            path.write_text(
                "crawler_name: Acme\n"
                "workers: 2\n"
                "output_dir: out\n"
                "source:\n"
                "  type: csv_headers\n"
                "  paths: [a.csv, b.csv]\n",
                encoding="utf-8",
            )
            config = load_config(str(path))
            base = Path(tmp).resolve()
        self.assertEqual(2, config.workers)
        self.assertEqual(str(base / "out"), config.output_dir)
        self.assertEqual([str(base / "a.csv"), str(base / "b.csv")], config.source.input_paths())

    def test_load_config_raises_with_issues(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "crawlgen.yaml"
            path.write_text("crawler_name: Acme\n", encoding="utf-8")
            with self.assertRaises(ConfigError) as ctx:
                load_config(str(path))
        self.assertEqual("CONFIG_INVALID", ctx.exception.code)
        self.assertEqual("/", ctx.exception.issues[0].path)

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/crawlgen.yaml")

    def test_schema_loads(self) -> None:
        schema = load_config_schema()
        self.assertEqual(["crawler_name", "source"], schema["required"])


if __name__ == "__main__":
    unittest.main()
