from __future__ import annotations

from pathlib import Path
import os
import tempfile
import unittest

from packager.console import RecordingConsole
from packager.distribution import DistributionAssembler, distribution_root
from packager.programs import Program
from packager.scripts import LauncherScriptWriter

from support import make_project


class DistributionAssemblerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.project = make_project(self.root, "p", main_class="com.example.Main")
        self.p_jar = self.project.out / "p.jar"
        self.p_jar.write_bytes(b"p")
        self.dep_jar = self.root / "deps" / "dep.jar"
        self.dep_jar.parent.mkdir()
        self.dep_jar.write_bytes(b"dep")
        os.utime(self.dep_jar, (1_600_000_000, 1_600_000_000))
        self.console = RecordingConsole()
        self.assembler = DistributionAssembler(self.console, LauncherScriptWriter(platform="linux"))
        self.output_root = self.root / "dist-out"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_lays_out_lib_and_bin(self) -> None:
        programs = [Program("app", "com.example.Main")]

        dist = self.assembler.assemble(self.project, programs, [self.p_jar, self.dep_jar], self.output_root)

        self.assertEqual(dist, self.output_root / "p")
        self.assertEqual(sorted(path.name for path in (dist / "lib").iterdir()), ["dep.jar", "p.jar"])
        self.assertEqual([path.name for path in (dist / "bin").iterdir()], ["app"])
        self.assertEqual((dist / "lib" / "dep.jar").read_bytes(), b"dep")
        self.assertEqual(int((dist / "lib" / "dep.jar").stat().st_mtime), 1_600_000_000)

    def test_rerun_without_programs_clears_bin_and_stale_libs(self) -> None:
        dist = self.assembler.assemble(
            self.project, [Program("app", "com.example.Main")], [self.p_jar, self.dep_jar], self.output_root
        )
        (dist / "lib" / "stale.jar").write_bytes(b"old")

        self.assembler.assemble(self.project, [], [self.p_jar], self.output_root)

        self.assertEqual([path.name for path in (dist / "lib").iterdir()], ["p.jar"])
        self.assertFalse((dist / "bin").exists())

    def test_archives_with_the_same_filename_are_copied_once(self) -> None:
        other = self.root / "other" / "dep.jar"
        other.parent.mkdir()
        other.write_bytes(b"other dep")

        dist = self.assembler.assemble(self.project, [], [self.dep_jar, other], self.output_root)

        self.assertEqual((dist / "lib" / "dep.jar").read_bytes(), b"dep")
        self.assertTrue(any("skipping" in line for line in self.console.lines("info")))

    def test_default_root_is_inside_project_output(self) -> None:
        self.assertEqual(distribution_root(self.project, None), self.project.out / "dist")

        dist = self.assembler.assemble(self.project, [], [self.p_jar])

        self.assertEqual(dist, self.project.out / "dist")
        self.assertTrue((dist / "lib" / "p.jar").exists())

    def test_missing_archive_is_fatal(self) -> None:
        with self.assertRaises(FileNotFoundError):
            self.assembler.assemble(self.project, [], [self.root / "nope.jar"], self.output_root)


class LauncherScriptWriterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.bin_dir = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_posix_scripts_are_executable(self) -> None:
        writer = LauncherScriptWriter(platform="linux")

        written = writer.write_scripts(
            self.bin_dir, "", [Program("app", "com.example.Main"), Program("tool", "com.example.Tool")]
        )

        self.assertEqual([path.name for path in written], ["app", "tool"])
        script = written[0].read_text(encoding="utf-8")
        self.assertTrue(script.startswith("#!/bin/sh\n"))
        self.assertIn('CLASSPATH="$APP_HOME/lib/*"', script)
        self.assertIn('-cp "$CLASSPATH" com.example.Main "$@"', script)
        self.assertTrue(os.access(written[0], os.X_OK))

    def test_classpath_prefix_is_prepended(self) -> None:
        writer = LauncherScriptWriter(platform="darwin")

        script = writer.render(Program("app", "com.example.Main"), "/opt/extra/*:")

        self.assertIn('CLASSPATH="/opt/extra/*:$APP_HOME/lib/*"', script)

    def test_windows_scripts_use_batch_files(self) -> None:
        writer = LauncherScriptWriter(platform="win32")

        written = writer.write_scripts(self.bin_dir, "", [Program("app", "com.example.Main")])

        self.assertEqual([path.name for path in written], ["app.bat"])
        content = written[0].read_bytes()
        self.assertTrue(content.startswith(b"@echo off\r\n"))
        self.assertIn(b'-cp "%CLASSPATH%" com.example.Main %*', content)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
