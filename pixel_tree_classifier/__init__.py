"""Decision tree classifier for small fixed-size grayscale images."""
