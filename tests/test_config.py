import os
import shutil
import tempfile
import toml
import unittest
from click.testing import CliRunner
from blake3build import config
from blake3build.main import cli
import json

class TestConfig(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.config_path = os.path.join(self.test_dir, config.CONFIG_FILE)
        self.sample_config = {
            "options": {
                "use_tbb": False,
                "shared": True
            },
            "cache": {
                "simd_type": "none"
            }
        }
        config.save_config(self.sample_config, path=self.test_dir)

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def invoke(self, *args):
        return CliRunner().invoke(cli, ["--path", self.test_dir, "config"] + list(args))

    def test_load_config_not_found(self):
        """Loading a non-existent config returns an empty dict."""
        os.remove(self.config_path)
        self.assertEqual(config.load_config(path=self.test_dir), {})

    def test_save_and_load_config(self):
        loaded_config = config.load_config(path=self.test_dir)
        self.assertEqual(loaded_config, self.sample_config)
        with open(self.config_path, "r") as f:
            self.assertEqual(toml.load(f), self.sample_config)

    def test_load_config_decode_error(self):
        with open(self.config_path, "w") as f:
            f.write("[options\nuse_tbb = ")
        self.assertEqual(config.load_config(path=self.test_dir), {})

    def test_get_option(self):
        self.assertTrue(config.get_option({"options": {"use_tbb": "ON"}}, "use_tbb"))
        self.assertFalse(config.get_option({"options": {"use_tbb": "off"}}, "use_tbb"))
        self.assertFalse(config.get_option({}, "use_tbb"))

    def test_get_nested_value(self):
        result = self.invoke("get", "cache.simd_type")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.output.strip().splitlines()[-1], "none")

    def test_get_non_existent_value(self):
        result = self.invoke("get", "cache.nonexistent")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Error: Key 'cache.nonexistent' not found", result.output)

    def test_set_value_parses_booleans(self):
        result = self.invoke("set", "options.use_tbb", "true")
        self.assertEqual(result.exit_code, 0)
        self.assertIs(config.load_config(path=self.test_dir)["options"]["use_tbb"], True)

    def test_set_nested_string_value(self):
        result = self.invoke("set", "cache.cflags.AVX512", "-mavx512f")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(config.load_config(path=self.test_dir)["cache"]["cflags"]["AVX512"], "-mavx512f")

    def test_unset_value(self):
        result = self.invoke("unset", "cache.simd_type")
        self.assertEqual(result.exit_code, 0)
        self.assertNotIn("simd_type", config.load_config(path=self.test_dir)["cache"])

    def test_list_config(self):
        result = self.invoke("list")
        self.assertEqual(result.exit_code, 0)
        self.assertIn(json.dumps(self.sample_config, indent=4), result.output)

    def test_init_refuses_to_overwrite(self):
        result = self.invoke("init")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(config.load_config(path=self.test_dir), self.sample_config)

    def test_init_force(self):
        result = self.invoke("init", "--force")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(config.load_config(path=self.test_dir)["options"], config.DEFAULT_CONFIG["options"])

if __name__ == "__main__":
    unittest.main()
