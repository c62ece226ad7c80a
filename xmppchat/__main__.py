"""Run the chat client: ``python -m xmppchat <JID Target>``."""

from xmppchat.main import run

run()
