"""Adapters for Matrix (chat) and Seerr (issue tracker)."""

from seerrbridge.adapters.base import ChatGateway, IssueTracker
from seerrbridge.adapters.matrix import MatrixGateway
from seerrbridge.adapters.seerr import SeerrAdapter

__all__ = ["ChatGateway", "IssueTracker", "MatrixGateway", "SeerrAdapter"]
