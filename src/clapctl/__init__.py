"""clapctl: deploy and operate ClapDB stacks through cloud provider backends."""

__version__ = '0.1.0'
