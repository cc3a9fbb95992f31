"""
================================================================================
stepchain
================================================================================

Semantic locators and a sequential step recorder for browser test automation.

Packages:
    - common: Logging and configuration shared by the framework
    - framework: Locator, resolver, context stack, recorder and helpers

Example:
    from stepchain.framework import Actor, ElementActions, Recorder

    recorder = Recorder()
    recorder.start()
    I = Actor(ElementActions(capabilities), recorder)

    I.fill_field("Email", "demo@example.com")
    I.click("Sign in")
    await recorder.promise()

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "framework",
]
