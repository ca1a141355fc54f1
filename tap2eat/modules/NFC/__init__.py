"""NFC module for reading and writing menu tags.

This module provides:
- NDEF message and Type 2 tag TLV codecs
- The menu payload carried on tags
- Reader adapters (simulated, PN532 over I2C)
- The tag scan controller (one-shot reads, continuous polling, writes)

Main components:
- nfc_core: codecs, adapters, state and the controller
- config: typed module configuration
"""
