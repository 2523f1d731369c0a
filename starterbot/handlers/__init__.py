from .commands import CommandsHandler, WELCOME_TEXT, COMMANDS, get_help_text
from .chat import ChatHandler, MESSAGE_RECEIVED_TEXT, CALLBACK_ANSWER_TEXT

__all__ = [
    'CommandsHandler', 'ChatHandler',
    'WELCOME_TEXT', 'COMMANDS', 'get_help_text',
    'MESSAGE_RECEIVED_TEXT', 'CALLBACK_ANSWER_TEXT'
]
