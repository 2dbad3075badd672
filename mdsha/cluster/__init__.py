"""Cluster manager access."""

from .crm import CrmClient
from .attribute import MetadataVersionAttribute, PromotionScore

__all__ = ['CrmClient', 'MetadataVersionAttribute', 'PromotionScore']
