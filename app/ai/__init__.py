"""
AI app for the chat bot peer.

This app handles:
- The bot's user identity (bootstrapped once per process)
- Reply generation through a pluggable provider (OpenAI, Anthropic)
- The deferred reply job: typing indicator, delay, reply message

Related apps:
    - authentication: The bot is an ordinary User with is_bot=True
    - chat: ConversationPipeline hands messages for the bot to BotResponder

Provider Architecture:
    Uses protocol-based abstraction for AI providers.
    See providers/ for implementations.

Usage:
    from ai.services import ReplyService

    reply = await ReplyService.generate_reply("hello")
"""
