"""Deployment pipeline: parameters, toplevel mode, steps and runner."""
