# App package
