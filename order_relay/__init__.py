"""Multi-channel order intake, purchase-order merge and tracking fill-back."""

__version__ = "0.1.0"
