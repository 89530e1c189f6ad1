"""Example kreate build script.

Layout assumed:

    src/util/util.go        package util (built as a C archive)
    src/app/main.go         package main
    assets/config.toml

Run from this directory:

    python build.py                 # full build
    python build.py build app -r    # app and its dependencies, release flags
    python build.py build -j 4 -g   # parallel, with the dependency table
    python build.py clean
    python build.py stamp           # custom command below
"""

from pathlib import Path

from kreate import Project, find_file
from kreate.output import log_info

project = Project("example", "0.1.0", languages=["go"])

util = project.static_lib("util", [find_file("util.go")])
app = project.executable("app", [find_file("main.go")], dependencies=[util])

project.copy_file("assets/config.toml", "bin/config.toml", dependencies=[app])


def write_version(target):
    Path(target.output).write_text(f"{project.config.name} {project.config.version}\n")


project.callback_target("version", write_version, output_path="build/VERSION")


@project.command("stamp")
def stamp(proj, args):
    result = proj.build(["version"])
    log_info(Path("build/VERSION").read_text().strip())
    return 0 if result.success else 1


if __name__ == "__main__":
    project.run()
