"""Core constants and error taxonomy shared by every resolver module."""
