from rosta.config.settings import settings

__all__ = ["settings"]
