"""Diagram walkers, machine loading and the command line tool."""
