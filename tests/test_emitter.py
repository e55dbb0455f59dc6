import json
import os
import tempfile
import unittest
from ffplan import codegen
from ffplan.catalog import load_catalog
from ffplan.emitter import emit
from ffplan.locator import LibraryMetadata
from ffplan.strategy import BuildStrategy


class TestCodegen(unittest.TestCase):

    def setUp(self):
        self.catalog = load_catalog()
        self.graph = self.catalog.graph

    def test_os_from_triple(self):
        self.assertEqual(codegen.os_from_triple("x86_64-apple-darwin"), "macos")
        self.assertEqual(codegen.os_from_triple("x86_64-pc-windows-msvc"), "windows")
        self.assertEqual(codegen.os_from_triple("x86_64-w64-mingw32"), "windows")
        self.assertEqual(codegen.os_from_triple("aarch64-unknown-linux-gnu"), "linux")
        self.assertEqual(codegen.os_from_triple(None), codegen.host_os())

    def test_search_include(self):
        with tempfile.TemporaryDirectory() as tmp:
            os.makedirs(os.path.join(tmp, "libavcodec"))
            open(os.path.join(tmp, "libavcodec", "avcodec.h"), "w").close()
            self.assertEqual(
                codegen.search_include(["/nonexistent", tmp], "libavcodec/avcodec.h"),
                os.path.join(tmp, "libavcodec", "avcodec.h"),
            )
        self.assertEqual(codegen.search_include([], "libavcodec/avcodec.h"), "/usr/include/libavcodec/avcodec.h")

    def test_allowlist_covers_base_symbols(self):
        allowlist = codegen.allowlist(self.graph.expand({"swscale"}), self.graph, self.catalog.codegen)
        self.assertIn("sws_.*", allowlist)
        self.assertIn("av_frame_.*", allowlist)
        self.assertEqual(list(allowlist), sorted(allowlist))

    def test_no_components_no_bindings(self):
        expanded = self.graph.expand({"build-lib-openssl"})
        self.assertEqual(codegen.allowlist(expanded, self.graph, self.catalog.codegen), ())
        self.assertEqual(codegen.headers(expanded, self.graph, self.catalog.codegen, (), "linux"), ())

    def test_platform_headers(self):
        expanded = self.graph.expand({"avcodec"})
        linux = codegen.headers(expanded, self.graph, self.catalog.codegen, (), "linux")
        windows = codegen.headers(expanded, self.graph, self.catalog.codegen, (), "windows")
        self.assertIn("/usr/include/libavutil/hwcontext_drm.h", linux)
        self.assertNotIn("/usr/include/libavutil/hwcontext_drm.h", windows)
        self.assertIn("/usr/include/libavutil/hwcontext_d3d11va.h", windows)
        self.assertIn("/usr/include/libavcodec/avcodec.h", linux)

    def test_blocklist_and_options(self):
        blocklist = codegen.blocklist(self.catalog.codegen)
        self.assertIn("max_align_t", blocklist["types"])
        self.assertIn("FP_NAN", blocklist["ignored_macros"])
        self.assertIn("strtold", blocklist["functions"])
        expanded = self.graph.expand({"avcodec", "non-exhaustive-enums"})
        self.assertEqual(codegen.options(expanded, self.graph), ("non-exhaustive-enums",))

    def test_int_macro_kind(self):
        rules = codegen.int_macro_rules(self.catalog.codegen)
        self.assertEqual(codegen.int_macro_kind("AV_CH_LAYOUT_MONO", 1 << 40, rules), "u64")
        self.assertEqual(codegen.int_macro_kind("AV_CODEC_FLAG_QSCALE", 2, rules), "uint")
        self.assertEqual(codegen.int_macro_kind("AV_CODEC_CAP_DR1", 1 << 1, rules), "uint")
        self.assertEqual(codegen.int_macro_kind("AV_ERROR_MAX_STRING_SIZE", 64, rules), "usize")
        self.assertEqual(codegen.int_macro_kind("AV_LOG_QUIET", -8, rules), "int")
        self.assertIsNone(codegen.int_macro_kind("AV_NOPTS_VALUE", 2 ** 40, rules))

    def test_local_headers_are_not_searched(self):
        headers = codegen.headers(self.graph.expand({"avcodec"}), self.graph, self.catalog.codegen, (), "linux")
        self.assertEqual(headers[-1], "channel_layout_fixed.h")


class TestPlanEmitter(unittest.TestCase):

    def setUp(self):
        self.catalog = load_catalog()
        self.expanded = self.catalog.graph.expand({"avformat"})
        self.metadata = {
            "avformat": LibraryMetadata(
                include_paths=("/usr/include/ffmpeg",),
                link_paths=("/usr/lib",),
                link_directives=(("dylib", "avformat"), ("framework", "Security")),
                version="60.16.100",
            ),
            "avcodec": LibraryMetadata(
                include_paths=("/usr/include/ffmpeg",),
                link_paths=("/usr/lib", "/opt/lib"),
                link_directives=(("dylib", "avcodec"), ("dylib", "avutil")),
                version="60.31.102",
            ),
            "avutil": LibraryMetadata(
                include_paths=("/usr/include/ffmpeg",),
                link_paths=("/usr/lib",),
                link_directives=(("dylib", "avutil"),),
                version="58.29.100",
            ),
        }

    def test_emit_is_deterministic(self):
        reordered = dict(reversed(list(self.metadata.items())))
        first = emit(self.expanded, self.metadata, self.catalog, target_os="linux")
        second = emit(self.expanded, reordered, self.catalog, target_os="linux")
        self.assertEqual(first.render_directives(), second.render_directives())
        self.assertEqual(first.to_json(), second.to_json())

    def test_directives_sorted_and_unique(self):
        plan = emit(self.expanded, self.metadata, self.catalog, target_os="linux")
        self.assertEqual(plan.link_directives, (
            ("dylib", "avcodec"),
            ("dylib", "avutil"),
            ("dylib", "avformat"),
            ("framework", "Security"),
        ))
        self.assertEqual(plan.link_paths, ("/usr/lib", "/opt/lib"))
        self.assertEqual(plan.include_paths, ("/usr/include/ffmpeg",))

    def test_macos_frameworks(self):
        plan = emit(self.expanded, self.metadata, self.catalog, target_os="macos")
        self.assertIn(("framework", "VideoToolbox"), plan.link_directives)
        self.assertEqual(plan.link_directives.count(("framework", "Security")), 1)
        linux = emit(self.expanded, self.metadata, self.catalog, target_os="linux")
        self.assertNotIn(("framework", "VideoToolbox"), linux.link_directives)

    def test_allowlist_contains_enabled_components(self):
        plan = emit(self.expanded, self.metadata, self.catalog, target_os="linux")
        self.assertIn("avformat_.*", plan.codegen_allowlist)
        self.assertIn("avcodec_.*", plan.codegen_allowlist)
        self.assertNotIn("sws_.*", plan.codegen_allowlist)

    def test_render_directives(self):
        plan = emit(self.expanded, self.metadata, self.catalog, target_os="linux")
        lines = plan.render_directives().splitlines()
        self.assertEqual(lines[0], "link-search=native=/usr/lib")
        self.assertIn("link-lib=dylib=avformat", lines)
        self.assertIn('cfg=feature="avcodec"', lines)
        self.assertIn("include=/usr/include/ffmpeg", lines)
        self.assertIn("blocklist-type=max_align_t", lines)
        self.assertLess(lines.index("link-lib=dylib=avcodec"), lines.index("link-lib=dylib=avformat"))

    def test_to_json(self):
        strategies = {name: BuildStrategy.SYSTEM_INSTALL for name in self.metadata}
        plan = emit(self.expanded, self.metadata, self.catalog, strategies=strategies, target_os="linux")
        data = json.loads(plan.to_json())
        self.assertEqual(data["enabled_features"], ["avcodec", "avformat"])
        self.assertEqual(data["libraries"]["avcodec"]["version"], "60.31.102")
        self.assertEqual(data["libraries"]["avcodec"]["strategy"], "system-install")
        self.assertEqual(data["target_os"], "linux")

    def test_codegen_extras(self):
        plan = emit(self.expanded, self.metadata, self.catalog, target_os="linux")
        lines = plan.render_directives().splitlines()
        self.assertIn("header=channel_layout_fixed.h", lines)
        self.assertIn("int-macro=AV_CH_.*=u64", lines)
        self.assertIn("int-macro=AV_CODEC_FLAG_.*=uint,fits=i32", lines)
        self.assertIn("constify-enum-variant=AV_CODEC_ID_FIRST_.*", lines)
        self.assertIn("codegen-setting=ctypes_prefix=libc", lines)
        self.assertIn("codegen-setting=prepend_enum_name=false", lines)
        self.assertIn("codegen-setting=size_t_is_usize=true", lines)
        data = json.loads(plan.to_json())
        self.assertEqual(data["codegen"]["int_macro_kinds"][-1], {"pattern": ".*", "kind": "int", "fits": "i32"})
        self.assertTrue(data["codegen"]["settings"]["derive_eq"])

    def test_static_build_links_ffmpeg_statically(self):
        expanded = self.catalog.graph.expand({"avformat", "static"})
        # pkg-config --libs --static output of each FFmpeg library
        metadata = {
            "avformat": LibraryMetadata(
                link_paths=("/opt/ffmpeg/lib",),
                link_directives=(
                    ("static", "avformat"), ("dylib", "m"), ("dylib", "avcodec"),
                    ("dylib", "swresample"), ("dylib", "avutil"), ("dylib", "z"),
                ),
                version="60.16.100",
            ),
            "avcodec": LibraryMetadata(
                link_paths=("/opt/ffmpeg/lib",),
                link_directives=(("static", "avcodec"), ("dylib", "swresample"), ("dylib", "avutil"), ("dylib", "z")),
                version="60.31.102",
            ),
            "avutil": LibraryMetadata(
                link_paths=("/opt/ffmpeg/lib",),
                link_directives=(("static", "avutil"),),
                version="58.29.100",
            ),
        }
        plan = emit(expanded, metadata, self.catalog, target_os="linux")
        names = [name for _, name in plan.link_directives]
        self.assertEqual(len(names), len(set(names)))
        for name in ("avformat", "avcodec", "avutil", "swresample"):
            self.assertIn(("static", name), plan.link_directives)
        self.assertIn(("dylib", "m"), plan.link_directives)
        self.assertIn(("dylib", "z"), plan.link_directives)

    def test_shared_build_keeps_dylib(self):
        plan = emit(self.expanded, self.metadata, self.catalog, target_os="linux")
        self.assertNotIn("static", [kind for kind, _ in plan.link_directives])

if __name__ == "__main__":
    unittest.main()
