"""Command-line front end for kube-stress."""
