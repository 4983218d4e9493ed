"""SecureStore Meta information.
   SecureStore keeps small secrets (tokens, credentials) encrypted at rest.
"""
__title__ = 'securestore'
__description__ = (
   'SecureStore keeps small secret values encrypted at rest '
   'in an owner-only directory.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
