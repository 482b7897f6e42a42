"""Safe transaction construction and transaction service integration."""

from .api_client import ProposalClient, build_proposal_payload, get_safe_ui_url
from .transaction_builder import build_transaction, encode_enable_module, encode_multi_send

__all__ = [
    "ProposalClient",
    "build_proposal_payload",
    "get_safe_ui_url",
    "build_transaction",
    "encode_enable_module",
    "encode_multi_send",
]
