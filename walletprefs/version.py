WALLETPREFS_VERSION = '1.4.0'  # version of the client package
