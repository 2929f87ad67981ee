from walletprefs.bitcoin import public_key_to_address
from walletprefs.constants import AddressType, NetworkType

from . import WalletPrefsTestCase, G_PUBKEY


class TestPublicKeyToAddress(WalletPrefsTestCase):

    def test_p2pkh(self):
        self.assertEqual('1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH',
                         public_key_to_address(G_PUBKEY, AddressType.P2PKH, NetworkType.MAINNET))
        self.assertIn(public_key_to_address(G_PUBKEY, AddressType.P2PKH, NetworkType.TESTNET)[0], 'mn')

    def test_p2wpkh(self):
        self.assertEqual('bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4',
                         public_key_to_address(G_PUBKEY, AddressType.P2WPKH, NetworkType.MAINNET))
        self.assertEqual('tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx',
                         public_key_to_address(G_PUBKEY, AddressType.P2WPKH, NetworkType.TESTNET))

    def test_m44_types_share_the_native_script(self):
        for native, m44 in ((AddressType.P2WPKH, AddressType.M44_P2WPKH),
                            (AddressType.P2TR, AddressType.M44_P2TR)):
            for net in NetworkType:
                self.assertEqual(public_key_to_address(G_PUBKEY, native, net),
                                 public_key_to_address(G_PUBKEY, m44, net))

    def test_p2tr(self):
        addr = public_key_to_address(G_PUBKEY, AddressType.P2TR, NetworkType.MAINNET)
        self.assertTrue(addr.startswith('bc1p'))
        self.assertEqual(62, len(addr))
        addr = public_key_to_address(G_PUBKEY, AddressType.P2TR, NetworkType.TESTNET)
        self.assertTrue(addr.startswith('tb1p'))
        self.assertEqual(62, len(addr))

    def test_p2sh_p2wpkh(self):
        self.assertTrue(public_key_to_address(G_PUBKEY, AddressType.P2SH_P2WPKH, NetworkType.MAINNET).startswith('3'))
        self.assertTrue(public_key_to_address(G_PUBKEY, AddressType.P2SH_P2WPKH, NetworkType.TESTNET).startswith('2'))

    def test_accepts_plain_ints(self):
        self.assertEqual(public_key_to_address(G_PUBKEY, AddressType.P2WPKH, NetworkType.MAINNET),
                         public_key_to_address(G_PUBKEY, 1, 0))

    def test_invalid_input(self):
        with self.assertRaises(ValueError):
            public_key_to_address('zz', AddressType.P2WPKH, NetworkType.MAINNET)
        with self.assertRaises(ValueError):
            public_key_to_address(G_PUBKEY, 9, NetworkType.MAINNET)
        with self.assertRaises(ValueError):
            public_key_to_address(G_PUBKEY, AddressType.P2WPKH, 7)
