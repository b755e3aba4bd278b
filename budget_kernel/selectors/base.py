"""
Module: budget_kernel.selectors.base
Responsibility: Base class for read-only query selectors.

Selectors take the caller's Session, never add/flush/commit, and return
frozen DTOs rather than ORM instances.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    def __init__(self, session: Session):
        self.session = session
