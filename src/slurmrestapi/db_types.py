"""Response types for the SLURM accounting REST API (``slurmdb/v0.0.38``).

Same conventions as :mod:`slurmrestapi.types`. Deeply nested structures that
vary between slurmdbd builds (QOS limits, job steps) are kept as raw
mappings rather than modelled field by field.
"""

from typing import Any

from pydantic import Field

from .types import SlurmModel, SlurmResponse

# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------


class TresItem(SlurmModel):
    """A trackable resource and, where relevant, its count."""

    type: str = ""
    name: str = ""
    id: int | None = None
    count: int | None = None


class AssociationShort(SlurmModel):
    account: str = ""
    cluster: str = ""
    partition: str = ""
    user: str = ""


class Coordinator(SlurmModel):
    name: str = ""
    direct: int = 0


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


class RollupStats(SlurmModel):
    type: str = ""
    last_run: int = 0
    last_cycle: int = 0
    max_cycle: int = 0
    total_time: int = 0
    total_cycles: int = 0
    mean_cycles: int = 0


class RpcTime(SlurmModel):
    average: int = 0
    total: int = 0


class DbRpc(SlurmModel):
    rpc: str = ""
    count: int = 0
    time: RpcTime = RpcTime()


class DbRpcByUser(SlurmModel):
    user: str = ""
    count: int = 0
    time: RpcTime = RpcTime()


class DbDiagStatistics(SlurmModel):
    time_start: int = 0
    rollups: list[RollupStats] = []
    rpcs: list[DbRpc] = Field([], alias="RPCs")
    users: list[DbRpcByUser] = []


class DbDiagResponse(SlurmResponse):
    statistics: DbDiagStatistics = DbDiagStatistics()


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class JobTimeSpent(SlurmModel):
    seconds: int = 0
    microseconds: int = 0


class JobTime(SlurmModel):
    """Accounting timestamps (Unix seconds) and usage of a job."""

    elapsed: int = 0
    eligible: int = 0
    end: int = 0
    start: int = 0
    submission: int = 0
    suspended: int = 0
    limit: int | None = None
    system: JobTimeSpent = JobTimeSpent()
    total: JobTimeSpent = JobTimeSpent()
    user: JobTimeSpent = JobTimeSpent()


class JobState(SlurmModel):
    current: str = ""
    reason: str = ""


class JobExitCode(SlurmModel):
    status: str = ""
    return_code: int = 0


class JobTres(SlurmModel):
    allocated: list[TresItem] = []
    requested: list[TresItem] = []


class JobComment(SlurmModel):
    administrator: str = ""
    job: str = ""
    system: str = ""


class DbJob(SlurmModel):
    """Accounting record of a job as stored by slurmdbd."""

    job_id: int = 0
    name: str = ""
    account: str = ""
    user: str = ""
    group: str = ""
    cluster: str = ""
    partition: str = ""
    qos: str = ""
    nodes: str = ""
    allocation_nodes: int = 0
    priority: int = 0
    flags: list[str] = []
    constraints: str = ""
    working_directory: str = ""
    submit_line: str = ""
    kill_request_user: str | None = None
    association: AssociationShort = AssociationShort()
    comment: JobComment = JobComment()
    time: JobTime = JobTime()
    state: JobState = JobState()
    exit_code: JobExitCode = JobExitCode()
    derived_exit_code: JobExitCode = JobExitCode()
    tres: JobTres = JobTres()
    steps: list[dict[str, Any]] = []


class DbJobsResponse(SlurmResponse):
    jobs: list[DbJob] = []


# ---------------------------------------------------------------------------
# Accounts and users
# ---------------------------------------------------------------------------


class Account(SlurmModel):
    name: str = ""
    description: str = ""
    organization: str = ""
    flags: list[str] = []
    associations: list[AssociationShort] = []
    coordinators: list[Coordinator] = []


class AccountsResponse(SlurmResponse):
    accounts: list[Account] = []


class UserDefaults(SlurmModel):
    account: str = ""
    wckey: str = ""


class User(SlurmModel):
    name: str = ""
    administrator_level: str = ""
    default: UserDefaults = UserDefaults()
    flags: list[str] = []
    associations: list[AssociationShort] = []
    coordinators: list[Coordinator] = []


class UsersResponse(SlurmResponse):
    users: list[User] = []


# ---------------------------------------------------------------------------
# QOS
# ---------------------------------------------------------------------------


class QosPreempt(SlurmModel):
    preempt_list: list[str] = Field([], alias="list")
    mode: list[str] = []
    exempt_time: int | None = None


class Qos(SlurmModel):
    """A quality-of-service definition.

    ``limits`` is kept as the raw nested mapping (``max``, ``min``,
    ``grace_time``, ``factor``) since its shape differs across builds.
    """

    id: int = 0
    name: str = ""
    description: str = ""
    flags: list[str] = []
    priority: int | None = None
    usage_factor: float | None = None
    usage_threshold: float | None = None
    preempt: QosPreempt = QosPreempt()
    limits: dict[str, Any] = {}


class QosResponse(SlurmResponse):
    qos: list[Qos] = []


# ---------------------------------------------------------------------------
# Clusters
# ---------------------------------------------------------------------------


class ClusterController(SlurmModel):
    host: str = ""
    port: int = 0


class Cluster(SlurmModel):
    name: str = ""
    nodes: str = ""
    flags: list[str] = []
    controller: ClusterController = ClusterController()
    rpc_version: int = 0
    select_plugin: str = ""
    tres: list[TresItem] = []


class ClustersResponse(SlurmResponse):
    clusters: list[Cluster] = []


# ---------------------------------------------------------------------------
# TRES, WCKeys, associations
# ---------------------------------------------------------------------------


class TresResponse(SlurmResponse):
    tres: list[TresItem] = Field([], alias="TRES")


class Wckey(SlurmModel):
    id: int = 0
    name: str = ""
    cluster: str = ""
    user: str = ""
    accounts: list[str] = []
    flags: list[str] = []


class WckeysResponse(SlurmResponse):
    wckeys: list[Wckey] = []


class AssociationDefaults(SlurmModel):
    qos: str = ""


class Association(SlurmModel):
    account: str = ""
    cluster: str = ""
    partition: str = ""
    user: str = ""
    parent_account: str = ""
    lineage: str = ""
    is_default: bool = False
    qos: list[str] = []
    shares_raw: int | None = None
    priority: int | None = None
    default: AssociationDefaults = AssociationDefaults()


class AssociationsResponse(SlurmResponse):
    associations: list[Association] = []
