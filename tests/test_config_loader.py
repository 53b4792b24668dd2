from __future__ import annotations

from pathlib import Path
import json
import tempfile
import textwrap
import unittest

from packager.config_loader import ConfigurationStore, PackagerSettings, ProjectDefinition
from packager.errors import ConfigurationError

from support import project_mapping, write_project_file


class ConfigurationStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.config_dir = self.root / ".bloop"
        self.config_dir.mkdir()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_loads_projects_and_skips_other_json_files(self) -> None:
        core = project_mapping(self.root, "core")
        app = project_mapping(
            self.root,
            "app",
            classpath=[self.root / ".bloop" / "core" / "classes", self.root / "cache" / "cats.jar"],
            resources=[self.root / "app" / "resources"],
            main_class="com.example.Main",
        )
        write_project_file(self.config_dir, core)
        write_project_file(self.config_dir, app)
        (self.config_dir / "bloop.settings.json").write_text(json.dumps({"javaOptions": []}), encoding="utf-8")

        store = ConfigurationStore.from_directory(self.config_dir)

        self.assertEqual(list(store.list_projects()), ["app", "core"])
        self.assertEqual([path.name for path in store.skipped], ["bloop.settings.json"])
        project = store.get_project("app")
        self.assertEqual(project.main_class, "com.example.Main")
        self.assertEqual(project.classpath[1], self.root / "cache" / "cats.jar")
        self.assertEqual(project.resources, [self.root / "app" / "resources"])
        self.assertEqual(store.dependency_lookup()[self.root / ".bloop" / "core" / "classes"].name, "core")

    def test_unknown_project_lists_available_names(self) -> None:
        write_project_file(self.config_dir, project_mapping(self.root, "core"))
        store = ConfigurationStore.from_directory(self.config_dir)

        with self.assertRaises(KeyError) as ctx:
            store.get_project("missing")
        self.assertIn("Available projects: core", ctx.exception.args[0])

    def test_packageable_projects_exclude_tests_and_other_platforms(self) -> None:
        write_project_file(self.config_dir, project_mapping(self.root, "core"))
        write_project_file(self.config_dir, project_mapping(self.root, "core-test", tags=["test"]))
        write_project_file(self.config_dir, project_mapping(self.root, "web", platform="js"))
        write_project_file(self.config_dir, project_mapping(self.root, "untagged", tags=None))

        store = ConfigurationStore.from_directory(self.config_dir)

        self.assertEqual([project.name for project in store.packageable_projects()], ["core", "untagged"])
        self.assertNotIn(store.get_project("web").classes_dir, store.dependency_lookup())

    def test_main_class_list_form_is_accepted(self) -> None:
        mapping = project_mapping(self.root, "app")
        mapping["project"]["platform"]["mainClass"] = ["com.example.Legacy"]

        self.assertEqual(ProjectDefinition.from_mapping(mapping).main_class, "com.example.Legacy")

        mapping["project"]["platform"]["mainClass"] = []
        self.assertIsNone(ProjectDefinition.from_mapping(mapping).main_class)

    def test_missing_required_fields_are_configuration_errors(self) -> None:
        mapping = project_mapping(self.root, "app")
        del mapping["project"]["classesDir"]

        with self.assertRaises(ConfigurationError):
            ProjectDefinition.from_mapping(mapping)

    def test_fields_the_packager_does_not_use_are_ignored(self) -> None:
        mapping = project_mapping(self.root, "app")
        mapping["project"]["dependencies"] = 42
        mapping["project"]["directory"] = None

        project = ProjectDefinition.from_mapping(mapping)

        self.assertEqual(project.name, "app")
        self.assertFalse(hasattr(project, "dependencies"))

    def test_invalid_json_is_a_configuration_error(self) -> None:
        (self.config_dir / "broken.json").write_text("{ not json", encoding="utf-8")

        with self.assertRaises(ConfigurationError):
            ConfigurationStore.from_directory(self.config_dir)

    def test_duplicate_project_names_are_rejected(self) -> None:
        write_project_file(self.config_dir, project_mapping(self.root, "core"))
        (self.config_dir / "core-copy.json").write_text(
            json.dumps(project_mapping(self.root, "core")), encoding="utf-8"
        )

        with self.assertRaises(ConfigurationError):
            ConfigurationStore.from_directory(self.config_dir)


class PackagerSettingsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_reads_toml_settings(self) -> None:
        path = self.root / "packager.toml"
        path.write_text(
            textwrap.dedent(
                """
                [packager]
                log_level = "info"
                dist_path = "target/dist"
                bundle_format = "tar.zst"
                programs = ["app:com.example.Main"]
                """
            ),
            encoding="utf-8",
        )

        settings = PackagerSettings.load(path)

        self.assertEqual(settings.log_level, "info")
        self.assertEqual(settings.dist_path, Path("target/dist"))
        self.assertEqual(settings.bundle_format, "tar.zst")
        self.assertEqual(settings.programs, ["app:com.example.Main"])

    def test_reads_yaml_settings(self) -> None:
        path = self.root / "packager.yaml"
        path.write_text(
            textwrap.dedent(
                """
                packager:
                  programs: app:com.example.Main
                """
            ),
            encoding="utf-8",
        )

        settings = PackagerSettings.load(path)

        self.assertEqual(settings.programs, ["app:com.example.Main"])
        self.assertIsNone(settings.dist_path)

    def test_missing_file_is_an_error_and_none_gives_defaults(self) -> None:
        with self.assertRaises(ConfigurationError):
            PackagerSettings.load(self.root / "absent.toml")
        self.assertEqual(PackagerSettings.load(None), PackagerSettings())

    def test_settings_file_is_found_next_to_projects(self) -> None:
        config_dir = self.root / ".bloop"
        write_project_file(config_dir, project_mapping(self.root, "core"))
        (config_dir / "packager.toml").write_text("[packager]\nlog_level = 'debug'\n", encoding="utf-8")

        store = ConfigurationStore.from_directory(config_dir)

        self.assertEqual(store.settings_file(), config_dir / "packager.toml")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
