# crashd

`crashd` collects diagnostics from a Kubernetes cluster that is no longer
responding. You describe what to gather in a small script file; `crashd`
runs each step on the local machine or on remote machines over SSH,
collects the results in a working directory, and bundles that directory
into a tar archive (gzip-compressed when the name ends in `.gz` or
`.gzip`).

## Installation

```
pip install .
```

## Usage

```
crash-diagnostics run --file Diagnostics.file --output out.tar.gz
crash-diagnostics version
crash-diagnostics --debug run
crash-diagnostics --version
```

`run` reads the script named by `--file` (default `Diagnostics.file`).
`--output` replaces any `OUTPUT` directive in the script. `--debug` turns
on debug logging; log lines go to standard output. Any failure is logged
and the command exits with status 1.

## Script format

Each line holds one directive followed by its arguments. Blank lines and
lines starting with `#` are ignored. Arguments may be given positionally
or as named parameters (`name:value`, optionally quoted with `"` or `'`).
`$VAR` and `${VAR}` references are expanded from the environment; an
unset variable expands to nothing.

Preamble directives (for each kind the last one wins, except `ENV`, which
accumulates):

| Directive    | Example                                                  |
|--------------|----------------------------------------------------------|
| `FROM`       | `FROM local 10.0.0.5:22` — machines to collect from       |
| `WORKDIR`    | `WORKDIR /tmp/crashdir` — where results are gathered      |
| `OUTPUT`     | `OUTPUT path:out.tar.gz` — the archive to write           |
| `AS`         | `AS userid:1000 groupid:1000` — user for local commands   |
| `AUTHCONFIG` | `AUTHCONFIG username:ops private-key:$HOME/.ssh/id_rsa`  |
| `KUBECONFIG` | `KUBECONFIG $HOME/.kube/config` — cluster to dump         |
| `ENV`        | `ENV LOGDIR=/var/log MSG="hello world"`                  |

`ENV` sets its variables in the process environment as soon as the line
is parsed, so later lines can refer to them. `AS` takes a numeric user id
or a user name; without `groupid` the current group is used.

Action directives, run in order on every machine named by `FROM`:

| Directive | Example                                                     |
|-----------|-------------------------------------------------------------|
| `CAPTURE` | `CAPTURE journalctl -l -u kubelet` — output saved to a file  |
| `RUN`     | `RUN hostname` — trimmed output stored in `$CMD_RESULT`      |
| `COPY`    | `COPY /var/log/kube-apiserver.log /etc/kubernetes`           |

Results for each machine go into a subdirectory of the working directory
named after its address (`local`, or e.g. `10_0_0_5_22`). A `CAPTURE`
file is named after its command line; a copied path keeps its path beneath
that subdirectory. When a capture or copy fails, the error message is
written in place of the result. A failing `RUN` is logged and the script
goes on.

Defaults: `FROM local`, `WORKDIR /tmp/crashdir`, `OUTPUT out.tar.gz`,
`AS` the current user, and `KUBECONFIG` from `$KUBECONFIG` or
`~/.kube/config`. When that kubeconfig file exists, nodes and, for every
namespace, events, replication controllers, services, daemon sets,
deployments, replica sets and pods are listed from the API server and
written as JSON to `cluster-dump.json` in the working directory. Problems
with the cluster are logged and do not stop the script.

After each command `CMD_EXITCODE` and `CMD_SUCCESS` are set in the
environment; local commands also set `CMD_PID`.

Remote machines need an `AUTHCONFIG` with a `private-key`; its `username`
is used for SSH, falling back to the `AS` user id. Remote `COPY` uses the
local `scp` program. Host keys of remote machines are accepted without
verification.

## Example

```
FROM local
WORKDIR /tmp/crashout
OUTPUT ./crash-out.tar.gz
CAPTURE df -h
CAPTURE journalctl -l -u kubelet
RUN hostname
CAPTURE /bin/echo "collected on ${CMD_RESULT}"
COPY /var/log/syslog
```

## Library use

```python
from crashd.parser import parse
from crashd.executor import Executor

with open("Diagnostics.file") as fh:
    script = parse(fh)
Executor(script).execute()
```

`parse` also accepts the script text as a string and raises
`crashd.args.ScriptError` for an unsupported or malformed directive.

## What it does not do

The cluster dump holds resource listings only; container logs of pods
are not collected. Commands run as the `AS` user by switching user and
group, which needs the privileges to do so when the user differs from
the current one.