"""Navigator Cookie Session Meta information.
   Navigator Cookie Session keeps the whole user session inside
   a signed and encrypted cookie.
"""
__title__ = 'navigator_cookie'
__description__ = (
   'Navigator Cookie Session keeps the whole user session '
   'inside a signed and encrypted cookie.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-session'
