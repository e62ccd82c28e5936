"""Vaultmux Meta information.
   Vaultmux gives us one asynchronous interface over many secret backends.
"""
__title__ = 'vaultmux'
__description__ = (
   'Vaultmux: unified asynchronous interface for storing and '
   'retrieving secrets across heterogeneous vault backends.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/vaultmux'
