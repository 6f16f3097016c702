"""
Forkflow - Fork-maintenance workflow around git and the gh CLI.

A CLI tool that:
1. Keeps a fork in sync with its upstream repository
2. Creates branches following a <prefix>/<type>/<name> convention
3. Backs up local-only files to a branch that is never pushed
4. Restores those files after switching branches

Usage:
    forkflow                # Interactive menu
    forkflow merge          # Sync with upstream
    forkflow checkout       # Switch branch (interactive)
    forkflow create         # Create branch (interactive)
    forkflow backup         # Backup local files to the local-only branch
    forkflow restore        # Restore local files from the local-only branch
    forkflow status         # Show current state
"""

__version__ = "0.1.0"
__author__ = "Forkflow"
