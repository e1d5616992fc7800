# sonoplug

Building blocks for cluster test plugins that report their results in the
Sonobuoy manual results format.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## The `sonoshell` command

`sonoshell` runs a suite of shell commands and records each one as a test.
Describe the suite in YAML:

```yaml
name: smoke
tests:
  - name: kubectl is present
    cmd: command -v kubectl
  - name: cluster answers
    cmd: kubectl get nodes
```

and run it:

```
sonoshell suite.yaml
```

Each command is written to its own temporary script (its file name starts with
the test name, non-word characters replaced by `_`) and executed with `bash`.
A command that exits with status zero passes, anything else fails, and the
suite as a whole fails if any of its tests fail. The summary, with each test's
combined output, is written as YAML to `/tmp/sonobuoy/results/sonoshell.yaml`.
The command exits with status 1 when no file is given, the file cannot be read
or parsed, or the results cannot be written.

The same steps are available from Python: `load_spec` parses the YAML into a
`TestSpec`, `make_test_pairs` writes the scripts, `run_tests` executes them and
`summarize` builds the overall `Result`, whose `to_dict` gives the
serialisable form.

## Modules

- `sonoplug.whocan_runner` — turns API resources and namespaces into
  `Action`s (`create_action`, `create_actions`), asks a `Checker` which role
  bindings allow each one and collects the answers through `Runner.run`,
  which raises `CheckerError` if a check fails. `get_api_resources` lists the
  resources a discovery object reports, keeping only the first resource of
  each name.
- `sonoplug.whocan_results` — `Result`, `Subject`, `Bindings` and
  `SonobuoyResultsItem`, with `results_by_subject`, `write_subjects_report`,
  `write_resources_report` (JSON) and `write_sonobuoy_report` (YAML in the
  Sonobuoy results shape).
- `sonoplug.whocan_config` — `load_config_from_env` reads the namespaces to
  query from the YAML in the `WHO_CAN_CONFIG` variable into a `WhoCanConfig`.
- `sonoplug.kube_api` — `RESTMapper` resolves a resource name and optional
  `group/version` from `ResourceList` discovery data; `new_resource` and
  `new_resource_for_kind` build an `ApiResource`, whose `path`,
  `path_with_name` and `path_with_subresource` give API paths. Failures raise
  `MappingError`.
- `sonoplug.kube_diff` — `render_obj` renders a Kubernetes object (a dict) as
  YAML or JSON with secrets redacted and controller-managed fields removed;
  `remove_spurious_diff` drops differences the API server introduces;
  `print_unified_diff` and `kube_diff` show what differs between two objects.
  `split_kpath` splits field paths such as `metadata.annotations["a.b/c"]`.
- `sonoplug.kube_filter` — `filter_yaml` and `filter_empty` prune ordered
  mappings by key path and remove empty nested mappings.
- `sonoplug.kube_values` — `Values`, a read-only string-keyed mapping, and
  `value_from_json` / `value_from_nested_map` to build it from decoded JSON.
- `sonoplug.kube_module` — `Module`, a named container whose `attr` and
  `attr_names` look up members.
- `sonoplug.kube_util` — `from_str` and `from_int` give the string form of an
  int-or-string value.
- `sonoplug.assertions` — `equals` and `fail` raise `AssertionFailed`; the
  failure text is a template with `$1` (expected), `$2` (actual), `$3`
  (their diff), `$4` and `$5` (their types), see `format_message`.
- `sonoplug.env_api` — `new_api` returns an `env` `Module` holding every
  `SONOLARK_<NAME>` variable as `name`; `get_envs`, `default_script_name` and
  `running_via_sonobuoy` (true when `SONOBUOY=true`).
- `sonoplug.loglevel` — `parse_level` and `set_level` accept
  `panic`, `fatal`, `error`, `warn`, `info`, `debug` and `trace`, returning a
  `Level`; other names raise `UnknownLevelError`.
- `sonoplug.buildinfo` — `BuildInfo` and `print_version`, which writes it as
  compact JSON.

## Example

```python
from sonoplug.assertions import AssertionFailed, equals

try:
    equals({"replicas": 3}, {"replicas": 2})
except AssertionFailed as exc:
    print(exc)
```

```python
from sonoplug.kube_diff import kube_diff

live = "apiVersion: v1\nkind: ConfigMap\ndata:\n  mode: a\n"
head = "apiVersion: v1\nkind: ConfigMap\ndata:\n  mode: b\n"
print(kube_diff(live, head))
```

## What this package does not do

- It does not talk to a Kubernetes cluster. There is no API client: reading,
  creating, updating or deleting objects, port forwarding and discovery are
  left to the caller, who passes discovery data to `RESTMapper` or
  `get_api_resources` and supplies a `Checker` to `Runner`.
- It has no who-can command; the reports are written by calling the
  functions in `sonoplug.whocan_results` with results you have gathered.
- It does not run scripts in an embedded language. The assertion, env, log
  level and build info helpers are plain Python functions.