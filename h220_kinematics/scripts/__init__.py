"""Command-line entry points for the H220 kinematics tools."""
