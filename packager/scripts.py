"""Launcher scripts for distribution ``bin/`` directories."""
from __future__ import annotations

from pathlib import Path
from string import Template
from typing import Iterable, List
import os
import sys

from .programs import Program

_POSIX_TEMPLATE = Template(
    """#!/bin/sh
# $name: launches $main_class
APP_HOME="$$(cd "$$(dirname "$$0")/.." && pwd -P)"
CLASSPATH="${prefix}$$APP_HOME/lib/*"
if [ -n "$$JAVA_HOME" ]; then
  JAVACMD="$$JAVA_HOME/bin/java"
else
  JAVACMD="java"
fi
exec "$$JAVACMD" $$JAVA_OPTS -cp "$$CLASSPATH" $main_class "$$@"
"""
)

_WINDOWS_TEMPLATE = Template(
    """@echo off\r
rem $name: launches $main_class\r
setlocal\r
set "APP_HOME=%~dp0.."\r
set "CLASSPATH=${prefix}%APP_HOME%\\lib\\*"\r
if defined JAVA_HOME (set "JAVACMD=%JAVA_HOME%\\bin\\java.exe") else (set "JAVACMD=java.exe")\r
"%JAVACMD%" %JAVA_OPTS% -cp "%CLASSPATH%" $main_class %*\r
"""
)


class LauncherScriptWriter:
    """Write one launcher script per program for the current (or given) platform."""

    def __init__(self, platform: str | None = None) -> None:
        self.platform = platform or sys.platform

    @property
    def is_windows(self) -> bool:
        return self.platform.startswith("win")

    def script_name(self, program: Program) -> str:
        return f"{program.name}.bat" if self.is_windows else program.name

    def render(self, program: Program, classpath_prefix: str) -> str:
        template = _WINDOWS_TEMPLATE if self.is_windows else _POSIX_TEMPLATE
        return template.substitute(name=program.name, main_class=program.main_class, prefix=classpath_prefix)

    def write_scripts(self, bin_dir: Path, classpath_prefix: str, programs: Iterable[Program]) -> List[Path]:
        written: List[Path] = []
        for program in programs:
            target = bin_dir / self.script_name(program)
            target.write_text(self.render(program, classpath_prefix), encoding="utf-8", newline="")
            if not self.is_windows:
                os.chmod(target, 0o755)
            written.append(target)
        return written


__all__ = ["LauncherScriptWriter"]
