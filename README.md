# rtplugins

Small command-line tools for working with an Artifactory server and its
published build information, plus library helpers for running pipeline tasks
locally in Docker.

## Installation

```
pip install rtplugins
```

For running the test suite:

```
pip install "rtplugins[test]"
pytest
```

## Server configuration

Every command talks to the Artifactory server chosen with `--server-id`; when
no server id is given, the server marked as default (or else the first one) is
used. Servers are read from the JFrog CLI configuration file
(`jfrog-cli.conf.v6`, `jfrog-cli.conf.v5` or `jfrog-cli.conf`) in the folder
named by `JFROG_CLI_HOME_DIR`, or in `~/.jfrog`. Each server entry may carry a
`url`, an `artifactoryUrl`, a `user` and `password`, or an `accessToken`.

This package only reads that file; it has no command to add or edit servers.

## Commands

### build-deps-info

Shows, for every dependency of a published build, the build that produced it
and a link to the commit it was built from.

```
build-deps-info show <build-name> <build-number> [--repo <repository>] [--server-id <id>]
```

`s` is an alias of `show`. Dependencies are looked up by their SHA-1 checksum
in batches of 125, so that each search request stays within the server's size
limits. Missing values are shown as `N/A`.

### build-report

Prints a table with the details of a published build and a table of its
modules, artifacts and dependencies.

```
build-report view [<build-name> <build-number>] [--diff <other-build-number>] [--server-id <id>]
```

`v` is an alias of `view`. With `--diff`, the modules table shows what is new,
unchanged, updated or removed compared with the other build number; on a
terminal the rows are coloured by change. When no arguments are given, the
build name and number are taken from the `JFROG_CLI_BUILD_NAME` and
`JFROG_CLI_BUILD_NUMBER` environment variables.

### file-spec-gen

Walks you through an interactive questionnaire and produces a file-spec JSON
document for search, download, upload, move, copy, delete or set-props.

```
file-spec-gen create [--file <path>]
```

`cr` is an alias of `create`. Choices are listed before each prompt; at the
optional-property prompt, answer `:x` to save and finish the current spec.
Further specs all use the command chosen in the first one. Without `--file`
the result is printed; with it, the spec is written to a new file (the path
must not be a directory or an existing file).

### rt-cleanup

Deletes every file in a repository that has not been downloaded or modified
for a given period.

```
rt-cleanup clean <repository> [--no-dl 1] [--time-unit month] [--server-id <id>]
```

`c` is an alias of `clean`. `--time-unit` accepts `year`, `month` or `day`.

### rm-empty

Removes all empty folders below a path. Repository roots are never removed.

```
rm-empty folders <repo/path> [--quiet] [--server-id <id>]
```

`f` is an alias of `folders`. Without `--quiet` the folders are listed and you
are asked to confirm before anything is deleted.

### rt-fs

Browses the repository tree like a file system.

```
rt-fs ls <repo/path> [--server-id <id>]
rt-fs cat <repo/path/to/file> [--server-id <id>]
```

`list` is an alias of `ls`. Wildcards are not accepted in paths. `ls` lays
out names in columns to the terminal width, folders in blue; `cat` prints the
content of a single file.

## Using the library

The building blocks behind the commands can be used directly:

```python
from rtplugins.aql import group_items, optional_vcs_url
from rtplugins.rtcleanup import build_aql, parse_time_flags
from rtplugins.rtfs import create_aql

period = parse_time_flags("17", "month")      # "17mo"
query = build_aql("libs-release-local", period)

group_items(["0", "1", "2", "3", "4"], 2)     # [["0", "1"], ["2", "3"], ["4"]]
create_aql("repository/dir/filename")         # '{"repo":"repository","path":"dir","name":"filename"}'
optional_vcs_url("https://git.example.com/app.git", "248")
# "https://git.example.com/app/commit/248"
```

`rtplugins.artifactory.ArtifactoryClient` wraps the REST calls the tools use
(`get_json`, `search_aql`, `search_pattern`, `get_build_info`, `delete_paths`
and `download_file`) and raises `ArtifactoryError` when a request fails or the
server answers with an error. `rtplugins.build_diff.BuildDiff.from_dict` reads
a build diff document, and `rtplugins.build_report.view` prints a report to
any text stream.

### Local pipeline tasks

These helpers need a working `docker` command on the machine.

- `rtplugins.integrations.IntegrationsParser` reads a project integrations
  JSON file; `by_name()` and `simplified()` give the integrations by name, and
  `ProjectIntegration.as_environment_variables()` turns one into environment
  variables.
- `rtplugins.step_json.StepJsonAssembler` builds the step JSON document of a
  mock step from those integrations.
- `rtplugins.downloader.DependenciesDownloader` fetches and caches the build
  plane tools (utility functions script, JFrog CLI, pipe tool, Docker client)
  in a folder, fetching only what `missing()` reports.
- `rtplugins.runners.DockerRunner` writes the script and step JSON into a
  developer folder, makes sure a Docker network and a Docker-in-Docker
  container are up, and runs the task in a container.

```python
import os
from rtplugins.integrations import IntegrationsParser
from rtplugins.runners import DockerRunner, RunnerOptions
from rtplugins.step_json import StepJsonAssembler

parser = IntegrationsParser()
parser.parse("integrations.json")
step_json = StepJsonAssembler(parser).assemble()

DockerRunner().run(RunnerOptions(
    path_to_task=os.path.abspath("my-task"),
    path_to_dependencies=os.path.abspath("deps"),
    path_to_local_developer_folder=os.path.abspath(".taskverse"),
    path_to_working_directory=os.getcwd(),
    script=open("script.sh", "rb").read(),
    step_json=step_json,
))
```

### What this package does not do

There is no command for running a pipeline task; the pieces above must be put
together in your own code. The package also does not generate the steplet
script that the task container runs: you supply its content in
`RunnerOptions.script`.