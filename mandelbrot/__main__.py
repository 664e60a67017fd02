"""
Allow running the package directly: python -m mandelbrot
"""
from .app import main

main()
