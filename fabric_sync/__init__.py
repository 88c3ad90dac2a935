"""Pull Microsoft Fabric item definitions into a local git-tracked tree."""

__version__ = "0.1.0"
