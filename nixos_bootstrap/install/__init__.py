"""Operator-facing steps: preconditions, prompts, configuration and nixos-install."""
