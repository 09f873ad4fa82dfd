"""Exception types shared across the pipeline."""


class KBChatError(Exception):
    """Base class for application errors."""


class GenerationError(KBChatError):
    """The text-generation model call failed or returned nothing usable."""


class EmbeddingError(KBChatError):
    """A single embedding attempt failed."""


class TenantNotFoundError(KBChatError):
    def __init__(self, tenant_id: str):
        super().__init__(f"Client not found: {tenant_id}")
        self.tenant_id = tenant_id
