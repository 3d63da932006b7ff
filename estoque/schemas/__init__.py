from .base import ApiModel, build_insert_schema, build_update_schema
from .inserts import (
    InsertCompany,
    InsertSuperAdmin,
    InsertUser,
    InsertSupplier,
    InsertCategory,
    InsertProduct,
    InsertStockMovement,
    InsertChecklistTemplate,
    InsertChecklistItem,
    InsertChecklistExecution,
    InsertChecklistExecutionItem,
    UpdateCompany,
    UpdateSupplier,
    UpdateCategory,
    UpdateProduct,
    UpdateChecklistItem,
)
from .identity import (
    AuthEvent,
    ExternalUser,
    ExternalUserMetadata,
    ExternalSession,
    SyncUserRequest,
    SyncUserResponse,
    to_external_user,
    to_external_session,
)
from .auth import SignUpRequest, SignUpCompanyData, UserCreateRequest, AssignCompanyRequest
from .checklist import ExecutionItemUpdate, ExecutionComplete

__all__ = [
    "ApiModel",
    "build_insert_schema",
    "build_update_schema",
    "InsertCompany",
    "InsertSuperAdmin",
    "InsertUser",
    "InsertSupplier",
    "InsertCategory",
    "InsertProduct",
    "InsertStockMovement",
    "InsertChecklistTemplate",
    "InsertChecklistItem",
    "InsertChecklistExecution",
    "InsertChecklistExecutionItem",
    "UpdateCompany",
    "UpdateSupplier",
    "UpdateCategory",
    "UpdateProduct",
    "UpdateChecklistItem",
    "AuthEvent",
    "ExternalUser",
    "ExternalUserMetadata",
    "ExternalSession",
    "SyncUserRequest",
    "SyncUserResponse",
    "to_external_user",
    "to_external_session",
    "SignUpRequest",
    "SignUpCompanyData",
    "UserCreateRequest",
    "AssignCompanyRequest",
    "ExecutionItemUpdate",
    "ExecutionComplete",
]
