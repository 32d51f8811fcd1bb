from aiopaginator.utils.async_utils import cancel_and_wait, maybe_await

__all__ = ["maybe_await", "cancel_and_wait"]
