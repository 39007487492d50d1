"""Delete local git branches that were squash-merged into a reference branch.

Features:
- Detect squash-merged branches by patch equivalence, not commit identity
- Resolve the reference branch from argument, environment or a config file
- Check out the reference branch before deleting anything
"""

__version__ = "0.1.0"
