"""Command definitions for the Salesforce CLI (``sf``) and its legacy form (``sfdx``).

Modern forms use the ``sf <topic> <verb>`` spelling with kebab-case flags.
Legacy forms use the ``force:<topic>:<verb>`` spelling with run-together flags.
"""

from logbridge.tool.dialects import CommandSpec, Opt, commands
from logbridge.tool.models import Operation

_TARGET = Opt("--target-org {target_org}", "target_org")
_LEGACY_TARGET = Opt("--targetusername {target_org}", "target_org")
_JSON = Opt("--json", "json")
_REDIRECT = Opt("> {output_file}", "output_file")

commands.register(
    CommandSpec(
        operation=Operation.VERSION,
        modern=("version",),
        legacy=("--version",),
        description="Report the installed CLI version",
    )
)

commands.register(
    CommandSpec(
        operation=Operation.LIST_LOGS,
        modern=("apex", "list", "log", _TARGET, "--json"),
        legacy=("force:apex:log:list", _LEGACY_TARGET, "--json"),
        description="List recent debug logs",
    )
)

commands.register(
    CommandSpec(
        operation=Operation.GET_LOG,
        modern=("apex", "get", "log", "--log-id {log_id}", _TARGET, _JSON, _REDIRECT),
        legacy=("force:apex:log:get", "--logid {log_id}", _LEGACY_TARGET, _JSON, _REDIRECT),
        description="Fetch one debug log body",
        required=frozenset({"log_id"}),
    )
)

commands.register(
    CommandSpec(
        operation=Operation.QUERY,
        modern=(
            "data",
            "query",
            "--query {query}",
            Opt("--use-tooling-api", "tooling"),
            _TARGET,
            "--json",
        ),
        legacy=(
            "force:data:soql:query",
            "--query {query}",
            Opt("--usetoolingapi", "tooling"),
            _LEGACY_TARGET,
            "--json",
        ),
        description="Run a SOQL query",
        required=frozenset({"query"}),
    )
)

commands.register(
    CommandSpec(
        operation=Operation.CREATE_RECORD,
        modern=(
            "data",
            "create",
            "record",
            "--sobject {sobject}",
            "--values {values}",
            Opt("--use-tooling-api", "tooling"),
            _TARGET,
            "--json",
        ),
        legacy=(
            "force:data:record:create",
            "--sobjecttype {sobject}",
            "--values {values}",
            Opt("--usetoolingapi", "tooling"),
            _LEGACY_TARGET,
            "--json",
        ),
        description="Create one record",
        required=frozenset({"sobject", "values"}),
    )
)

commands.register(
    CommandSpec(
        operation=Operation.UPDATE_RECORD,
        modern=(
            "data",
            "update",
            "record",
            "--sobject {sobject}",
            "--record-id {record_id}",
            "--values {values}",
            Opt("--use-tooling-api", "tooling"),
            _TARGET,
            "--json",
        ),
        legacy=(
            "force:data:record:update",
            "--sobjecttype {sobject}",
            "--sobjectid {record_id}",
            "--values {values}",
            Opt("--usetoolingapi", "tooling"),
            _LEGACY_TARGET,
            "--json",
        ),
        description="Update one record",
        required=frozenset({"sobject", "record_id", "values"}),
    )
)

commands.register(
    CommandSpec(
        operation=Operation.DELETE_RECORD,
        modern=(
            "data",
            "delete",
            "record",
            "--sobject {sobject}",
            "--record-id {record_id}",
            Opt("--use-tooling-api", "tooling"),
            _TARGET,
            "--json",
        ),
        legacy=(
            "force:data:record:delete",
            "--sobjecttype {sobject}",
            "--sobjectid {record_id}",
            Opt("--usetoolingapi", "tooling"),
            _LEGACY_TARGET,
            "--json",
        ),
        description="Delete one record",
        required=frozenset({"sobject", "record_id"}),
    )
)

# The legacy CLI has no bulk delete; callers delete one record at a time instead.
commands.register(
    CommandSpec(
        operation=Operation.BULK_DELETE,
        modern=(
            "data",
            "delete",
            "bulk",
            "--sobject {sobject}",
            "--file {file}",
            "--wait {wait}",
            _TARGET,
            "--json",
        ),
        description="Delete the records listed in a CSV file of ids",
        required=frozenset({"sobject", "file", "wait"}),
    )
)

commands.register(
    CommandSpec(
        operation=Operation.RUN_TESTS,
        modern=(
            "apex",
            "run",
            "test",
            Opt("--class-names {class_names}", "class_names"),
            Opt("--tests {tests}", "tests"),
            _TARGET,
            "--json",
        ),
        legacy=(
            "force:apex:test:run",
            Opt("--classnames {class_names}", "class_names"),
            Opt("--tests {tests}", "tests"),
            _LEGACY_TARGET,
            "--json",
        ),
        description="Submit an asynchronous test run",
    )
)

commands.register(
    CommandSpec(
        operation=Operation.GET_TEST_RUN,
        modern=("apex", "get", "test", "--test-run-id {run_id}", _TARGET, "--json"),
        legacy=("force:apex:test:report", "--testrunid {run_id}", _LEGACY_TARGET, "--json"),
        description="Report the state and results of a test run",
        required=frozenset({"run_id"}),
    )
)

commands.register(
    CommandSpec(
        operation=Operation.LIST_ORGS,
        modern=("org", "list", "--all", "--json"),
        legacy=("force:org:list", "--all", "--json"),
        description="List every authorized org",
    )
)

commands.register(
    CommandSpec(
        operation=Operation.DISPLAY_ORG,
        modern=("org", "display", _TARGET, "--json"),
        legacy=("force:org:display", _LEGACY_TARGET, "--json"),
        description="Describe the default (or given) org",
    )
)

commands.register(
    CommandSpec(
        operation=Operation.DISPLAY_USER,
        modern=("org", "display", "user", _TARGET, "--json"),
        legacy=("force:user:display", _LEGACY_TARGET, "--json"),
        description="Describe the current user of an org",
    )
)

commands.register(
    CommandSpec(
        operation=Operation.SET_DEFAULT_ORG,
        modern=("config", "set", "target-org={alias}", "--json"),
        legacy=("force:config:set", "defaultusername={alias}", "--json"),
        description="Make an org the default target",
        required=frozenset({"alias"}),
    )
)

commands.register(
    CommandSpec(
        operation=Operation.RUN_ANONYMOUS,
        modern=("apex", "run", "--file {file}", _TARGET, "--json"),
        legacy=("force:apex:execute", "--apexcodefile {file}", _LEGACY_TARGET, "--json"),
        description="Execute anonymous Apex from a file",
        required=frozenset({"file"}),
    )
)

commands.register(
    CommandSpec(
        operation=Operation.GET_CONFIG,
        modern=("config", "get", "{key}", "--json"),
        legacy=("force:config:get", "{legacy_key}", "--json"),
        description="Read one CLI configuration value",
        required=frozenset({"key", "legacy_key"}),
    )
)
