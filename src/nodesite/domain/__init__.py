"""Domain layer — pure routing, navigation, redirect and page logic.

Nothing in here touches the network or the filesystem.
"""
