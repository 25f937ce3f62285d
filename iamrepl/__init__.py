"""iamrepl - replicate GCP service accounts and IAM bindings to a homologation project."""

from iamrepl.config import ReplicatorConfig
from iamrepl.models import PlanEntry, ReplicationReport, ServiceAccount, target_email
from iamrepl.replicator import build_binding_plan, run_replication

__version__ = "0.1.0"

__all__ = [
    "PlanEntry",
    "ReplicationReport",
    "ReplicatorConfig",
    "ServiceAccount",
    "build_binding_plan",
    "run_replication",
    "target_email",
    "__version__",
]
