"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for Base.metadata.create_all to see every table.
"""

from models.base import Base
from models.order import Order
from models.distribution_request import DistributionRequest
from models.distributor import Distributor
