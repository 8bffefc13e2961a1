"""
Engine Module - Pure, synchronous scan classification

Nothing in this package logs, reads files directly or talks to the network.
Rule data comes from biteinsight.knowledge.
"""
