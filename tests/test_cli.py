"""CLI tests: commands are driven through main(argv) with captured output."""

import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

import yaml

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "packages" / "core_engine" / "src"))
sys.path.insert(0, str(ROOT / "packages" / "cli" / "src"))

from cg_cli.main import build_parser, main

FIXTURES = ROOT / "tests" / "fixtures"


def _run(argv):
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        code = main(argv)
    return code, out.getvalue(), err.getvalue()


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.config = self.tmp / "crawlgen.yaml"
        self.write_config(FIXTURES / "metadata.csv")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write_config(self, source_path: Path, source_type: str = "metadata_file") -> None:
        self.config.write_text(
            yaml.safe_dump({
                "crawler_name": "Acme",
                "output_dir": "generated",
                "source": {"type": source_type, "path": str(source_path)},
            }),
            encoding="utf-8",
        )


class GenerateCommandTests(CliTestCase):
    def test_generate_writes_files(self) -> None:
        code, out, _ = _run(["generate", "--config", str(self.config)])
        self.assertEqual(0, code)
        self.assertIn("Wrote 10 artifacts", out)
        self.assertTrue((self.tmp / "generated" / "models" / "Customer.cs").exists())
        self.assertTrue((self.tmp / "generated" / "crawlerCode" / "crawlerCode.cs").exists())

    def test_out_dir_and_crawler_name_override(self) -> None:
        out_dir = self.tmp / "elsewhere"
        code, _, _ = _run([
            "generate", "--config", str(self.config), "--out-dir", str(out_dir),
            "--crawler-name", "Contoso", "--workers", "3",
        ])
        self.assertEqual(0, code)
        text = (out_dir / "vocabs" / "CustomerVocabulary.cs").read_text(encoding="utf-8")
        self.assertIn('VocabularyName = "Contoso Customer";', text)

    def test_dry_run_writes_nothing(self) -> None:
        code, out, _ = _run(["generate", "--config", str(self.config), "--dry-run"])
        self.assertEqual(0, code)
        self.assertIn("models/Order.cs", out)
        self.assertFalse((self.tmp / "generated").exists())

    def test_json_report(self) -> None:
        code, out, _ = _run(["generate", "--config", str(self.config), "--dry-run", "--output-json"])
        self.assertEqual(0, code)
        report = json.loads(out)
        self.assertTrue(report["ok"])
        self.assertEqual(3, report["tables"])

    def test_skipped_tables_exit_non_zero(self) -> None:
        self.write_config(FIXTURES / "cyclic.csv")
        code, out, _ = _run(["generate", "--config", str(self.config), "--dry-run"])
        self.assertEqual(1, code)
        self.assertIn("Alpha", out)

    def test_invalid_config(self) -> None:
        self.config.write_text("crawler_name: 9lives\n", encoding="utf-8")
        code, _, err = _run(["generate", "--config", str(self.config)])
        self.assertEqual(1, code)
        self.assertIn("CONFIG_VALIDATION_FAILED", err)

    def test_missing_source_file(self) -> None:
        self.write_config(self.tmp / "nope.csv")
        code, _, err = _run(["generate", "--config", str(self.config)])
        self.assertEqual(1, code)
        self.assertIn("SOURCE_FAILED", err)


class OtherCommandTests(CliTestCase):
    def test_init(self) -> None:
        target = self.tmp / "workspace"
        code, out, _ = _run(["init", "--path", str(target)])
        self.assertEqual(0, code)
        self.assertTrue((target / "crawlgen.yaml").exists())
        code, out, _ = _run(["init", "--path", str(target)])
        self.assertIn("already exists", out)

    def test_inspect_json(self) -> None:
        code, out, _ = _run(["inspect", "--config", str(self.config), "--format", "json", "--table", "order"])
        self.assertEqual(0, code)
        tables = json.loads(out)["tables"]
        self.assertEqual(["Order"], [t["table"] for t in tables])
        self.assertEqual("EntityType.Sales", tables[0]["entity_type"])
        self.assertEqual("Customer", tables[0]["foreign_keys"][0]["base_table"])

    def test_inspect_yaml(self) -> None:
        code, out, _ = _run(["inspect", "--config", str(self.config)])
        self.assertEqual(0, code)
        data = yaml.safe_load(out)
        self.assertEqual(["Customer", "Order", "OrderNote"], [t["table"] for t in data["tables"]])

    def test_sources(self) -> None:
        code, out, _ = _run(["sources", "--output-json"])
        self.assertEqual(0, code)
        self.assertIn("metadata_file", [s["type"] for s in json.loads(out)])

    def test_validate_config(self) -> None:
        code, out, _ = _run(["validate-config", "--config", str(self.config)])
        self.assertEqual(0, code)
        self.assertIn("No issues found.", out)

    def test_print_config_schema(self) -> None:
        code, out, _ = _run(["print-config-schema"])
        self.assertEqual(0, code)
        self.assertEqual("crawlgen configuration", json.loads(out)["title"])

    def test_parser_commands(self) -> None:
        parser = build_parser()
        args = parser.parse_args(["-vv", "generate", "--workers", "2"])
        self.assertEqual(2, args.verbose)
        self.assertEqual(2, args.workers)
        self.assertEqual("crawlgen.yaml", args.config)


if __name__ == "__main__":
    unittest.main()
