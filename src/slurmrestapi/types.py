"""Response types for the SLURM controller REST API (``slurm/v0.0.38``).

Pydantic models mirroring the documents returned by slurmrestd. Every field
has a default because the API omits fields freely across builds; unknown
fields are ignored. Models are frozen: they are snapshots of controller state
at request time and are never modified after decoding.

Field names follow the v0.0.38 OpenAPI schema. Where the wire key is not a
valid or idiomatic Python name (``Slurm``, ``LicenseName``) the attribute is
snake_case and the wire key is kept as the alias, so
``model_dump(by_alias=True)`` reproduces the original document.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SlurmModel(BaseModel):
    """Base for all API records: immutable, lenient about unknown keys."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class MetaPlugin(SlurmModel):
    type: str = ""
    name: str = ""


class MetaSlurmVersion(SlurmModel):
    # Integers in 22.05 and later, strings in older builds.
    major: int | str | None = None
    micro: int | str | None = None
    minor: int | str | None = None


class MetaSlurm(SlurmModel):
    version: MetaSlurmVersion = MetaSlurmVersion()
    release: str = ""


class Meta(SlurmModel):
    """Plugin and Slurm release information attached to every response."""

    plugin: MetaPlugin = MetaPlugin()
    # v0.0.38 capitalises this key; later versions do not.
    slurm: MetaSlurm = Field(
        MetaSlurm(),
        validation_alias=AliasChoices("Slurm", "slurm"),
        serialization_alias="Slurm",
    )


class Error(SlurmModel):
    """One entry of the ``errors`` array. Informational, never raised."""

    error: str = ""
    error_number: int = 0
    errno: int | None = None
    description: str = ""
    source: str = ""


class SlurmResponse(SlurmModel):
    """Fields shared by every response envelope."""

    meta: Meta = Meta()
    errors: list[Error] = []

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def error_messages(self) -> list[str]:
        """Readable form of each upstream error, for logging or display."""
        return [
            error.error or error.description or f"error number {error.error_number}"
            for error in self.errors
        ]


# ---------------------------------------------------------------------------
# Ping
# ---------------------------------------------------------------------------


class Ping(SlurmModel):
    """Liveness of one slurmctld daemon."""

    hostname: str = ""
    ping: str = ""
    mode: str = ""
    status: int = 0


class PingsResponse(SlurmResponse):
    pings: list[Ping] = []


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class Node(SlurmModel):
    """Hardware and state snapshot of a compute node.

    Memory values are in MiB, ``cpu_load`` is the load average scaled by 100,
    and timestamps are Unix seconds.
    """

    # Identification
    name: str = ""
    hostname: str = ""
    address: str = ""
    port: int | None = None
    comment: str = ""
    extra: str = ""
    owner: str | None = None
    mcs_label: str = ""

    # Hardware
    architecture: str = ""
    operating_system: str = ""
    boards: int = 0
    sockets: int = 0
    cores: int = 0
    threads: int = 0
    cpus: int = 0
    cpu_binding: int = 0
    real_memory: int = 0
    temporary_disk: int = 0
    weight: int = 0
    features: str = ""
    active_features: str = ""
    burstbuffer_network_address: str = ""

    # Utilisation
    alloc_cpus: int = 0
    idle_cpus: int = 0
    cpu_load: int = 0
    alloc_memory: int = 0
    free_memory: int = 0
    gres: str = ""
    gres_drained: str = ""
    gres_used: str = ""
    tres: str = ""
    tres_used: str | None = None
    tres_weighted: float = 0.0

    # State
    state: str = ""
    state_flags: list[str] = []
    next_state_after_reboot: str = ""
    next_state_after_reboot_flags: list[str] = []
    reason: str = ""
    reason_changed_at: int = 0
    reason_set_by_user: str | None = None
    boot_time: int = 0
    last_busy: int = 0
    slurmd_start_time: int = 0
    version: str = ""

    partitions: list[str] = []


class NodesResponse(SlurmResponse):
    nodes: list[Node] = []


# ---------------------------------------------------------------------------
# Partitions
# ---------------------------------------------------------------------------


class Partition(SlurmModel):
    """Policy and limits of one scheduling partition.

    Time limits are in minutes, memory limits in MiB.
    """

    name: str = ""
    nodes: str = ""
    state: str = ""
    flags: list[str] = []
    preemption_mode: list[str] = []
    alternative: str = ""
    billing_weights: str = ""
    tres: str = ""

    # Access control
    allowed_allocation_nodes: str = ""
    allowed_accounts: str = ""
    allowed_groups: str = ""
    allowed_qos: str = ""
    denied_accounts: str = ""
    denied_qos: str = ""
    qos: str = ""

    # Limits
    default_memory_per_cpu: int | None = None
    default_memory_per_node: int | None = None
    default_time_limit: int | None = None
    max_time_limit: int | None = None
    over_time_limit: int | None = None
    preemption_grace_time: int | None = None
    maximum_cpus_per_node: int | None = None
    maximum_memory_per_node: int | None = None
    maximum_memory_per_cpu: int | None = None
    maximum_nodes_per_job: int | None = None
    min_nodes_per_job: int | None = None

    # Priority and size
    priority_job_factor: int = 0
    priority_tier: int = 0
    total_cpus: int = 0
    total_nodes: int = 0


class PartitionsResponse(SlurmResponse):
    partitions: list[Partition] = []


# ---------------------------------------------------------------------------
# Reservations
# ---------------------------------------------------------------------------


class ReservationPurgeCompleted(SlurmModel):
    time: int = 0


class Reservation(SlurmModel):
    """A time-bounded block of resources held for accounts or users."""

    name: str = ""
    accounts: str = ""
    users: str = ""
    groups: str = ""
    partition: str = ""
    node_list: str = ""
    node_count: int = 0
    core_count: int = 0
    core_spec_cnt: int = 0
    licenses: str = ""
    features: str = ""
    burst_buffer: str = ""
    tres: str = ""
    flags: list[str] = []
    start_time: int = 0
    end_time: int = 0
    max_start_delay: int = 0
    purge_completed: ReservationPurgeCompleted = ReservationPurgeCompleted()
    watts: int | None = None


class ReservationsResponse(SlurmResponse):
    reservations: list[Reservation] = Field(
        [],
        validation_alias=AliasChoices("reservations", "reservation"),
        serialization_alias="reservations",
    )


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


class RpcByMessageType(SlurmModel):
    message_type: str = ""
    type_id: int = 0
    count: int = 0
    average_time: int = 0
    total_time: int = 0


class RpcByUser(SlurmModel):
    user: str = ""
    user_id: int = 0
    count: int = 0
    average_time: int = 0
    total_time: int = 0


class DiagStatistics(SlurmModel):
    """slurmctld scheduler counters. Cycle timings are in microseconds."""

    parts_packed: int = 0
    req_time: int = 0
    req_time_start: int = 0
    server_thread_count: int = 0
    agent_queue_size: int = 0
    agent_count: int = 0
    agent_thread_count: int = 0
    dbd_agent_queue_size: int = 0
    gettimeofday_latency: int = 0

    schedule_cycle_max: int = 0
    schedule_cycle_last: int = 0
    schedule_cycle_total: int = 0
    schedule_cycle_mean: int = 0
    schedule_cycle_mean_depth: int = 0
    schedule_cycle_per_minute: int = 0
    schedule_queue_length: int = 0

    jobs_submitted: int = 0
    jobs_started: int = 0
    jobs_completed: int = 0
    jobs_canceled: int = 0
    jobs_failed: int = 0
    jobs_pending: int = 0
    jobs_running: int = 0
    job_states_ts: int = 0

    bf_backfilled_jobs: int = 0
    bf_last_backfilled_jobs: int = 0
    bf_backfilled_het_jobs: int = 0
    bf_cycle_counter: int = 0
    bf_cycle_mean: int = 0
    bf_depth_mean: int = 0
    bf_depth_mean_try: int = 0
    bf_cycle_last: int = 0
    bf_cycle_max: int = 0
    bf_queue_len: int = 0
    bf_queue_len_mean: int = 0
    bf_table_size: int = 0
    bf_table_size_mean: int = 0
    bf_when_last_cycle: int = 0
    bf_active: bool = False

    rpcs_by_message_type: list[RpcByMessageType] = []
    rpcs_by_user: list[RpcByUser] = []


class DiagResponse(SlurmResponse):
    statistics: DiagStatistics = DiagStatistics()


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class Job(SlurmModel):
    """Controller view of a pending or running job. Memory values in MiB."""

    # Core identification
    job_id: int = 0
    name: str = ""
    array_job_id: int = 0
    array_task_id: int | None = None
    array_task_string: str = ""
    het_job_id: int = 0
    het_job_offset: int = 0
    cluster: str = ""

    # Ownership
    account: str = ""
    user_id: int = 0
    user_name: str = ""
    group_id: int = 0
    association_id: int = 0
    wckey: str = ""
    qos: str = ""
    partition: str = ""
    comment: str = ""
    admin_comment: str = ""

    # State
    job_state: str = ""
    state_description: str = ""
    state_reason: str = ""
    flags: list[str] = []
    priority: int = 0
    nice: int = 0
    restart_cnt: int = 0
    exit_code: int = 0
    derived_exit_code: int = 0
    dependency: str = ""
    requeue: bool = False

    # Resources
    nodes: str = ""
    batch_host: str = ""
    node_count: int = 0
    cpus: int = 0
    tasks: int = 0
    cpus_per_task: int | None = None
    memory_per_node: int | None = None
    memory_per_cpu: int | None = None
    features: str = ""
    required_nodes: str = ""
    excluded_nodes: str = ""
    licenses: str = ""
    tres_req_str: str = ""
    tres_alloc_str: str = ""
    gres_detail: list[str] = []
    resv_name: str = ""

    # Timing (Unix seconds, limits in minutes)
    submit_time: int = 0
    eligible_time: int = 0
    accrue_time: int = 0
    start_time: int = 0
    end_time: int = 0
    suspend_time: int = 0
    deadline: int = 0
    time_limit: int | None = None
    time_minimum: int = 0

    # Execution
    command: str = ""
    current_working_directory: str = ""
    standard_input: str = ""
    standard_output: str = ""
    standard_error: str = ""
    batch_flag: bool = False


class JobsResponse(SlurmResponse):
    jobs: list[Job] = []


# ---------------------------------------------------------------------------
# Licenses
# ---------------------------------------------------------------------------


class License(SlurmModel):
    """Usage of one cluster license. The wire keys are CamelCase."""

    name: str = Field("", alias="LicenseName")
    total: int = Field(0, alias="Total")
    used: int = Field(0, alias="Used")
    free: int = Field(0, alias="Free")
    remote: bool = Field(False, alias="Remote")
    reserved: int = Field(0, alias="Reserved")


class LicensesResponse(SlurmResponse):
    licenses: list[License] = []


def to_wire(model: BaseModel) -> dict[str, Any]:
    """Encode a model back into its JSON document form."""
    return model.model_dump(mode="json", by_alias=True)
