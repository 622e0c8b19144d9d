from .leave import LeaveService

__all__ = ["LeaveService"]
