"""Core components: groups, invites, Merkle trees, storage and configuration"""
