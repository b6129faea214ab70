"""
Identity module for the curses client.
Handles the nickname and color prompts shown at startup.
"""

from .identity_flow import IdentityFlow, IdentityResult

__all__ = ['IdentityFlow', 'IdentityResult']
