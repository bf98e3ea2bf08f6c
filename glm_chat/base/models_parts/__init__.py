"""One-type-per-module implementations re-exported by ``glm_chat.base.models``."""
