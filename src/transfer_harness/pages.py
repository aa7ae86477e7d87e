"""
HTML pages that fan out many requests from a single page load.

The embedded script computes the same Lehmer sequence as
transfer_harness.prng.generate; a Uint8Array store keeps the low 8 bits.
"""

LENGTH_PLACEHOLDER = "LENGTH"
NUM_PLACEHOLDER = "NUM"

PRNG_JS = """
var buf = new ArrayBuffer(LENGTH);
var prng = new Uint8Array(buf);
var seed = 1;
for (var i = 0; i < LENGTH; i++) {
	// https://en.wikipedia.org/wiki/Lehmer_random_number_generator
	seed = seed * 48271 % 2147483647;
	prng[i] = seed;
}
"""

UPLOAD_HTML = (
    """
<html>
<body>
<script>
"""
    + PRNG_JS
    + """
	for (var i = 0; i < NUM; i++) {
		var req = new XMLHttpRequest();
		req.open("POST", "/uploadhandler?len=" + LENGTH, true);
		req.send(buf);
	}
</script>
</body>
</html>
"""
)

DOWNLOAD_HTML = (
    """
<html>
<body>
<script>
"""
    + PRNG_JS
    + """
	function verify(data) {
		if (data.length !== LENGTH) return false;
		for (var i = 0; i < LENGTH; i++) {
			if (data[i] !== prng[i]) return false;
		}
		return true;
	}

	var nOK = 0;
	for (var i = 0; i < NUM; i++) {
		let req = new XMLHttpRequest();
		req.responseType = "arraybuffer";
		req.open("GET", "/prdata?len=" + LENGTH, true);
		req.onreadystatechange = function () {
			if (req.readyState === XMLHttpRequest.DONE && req.status === 200) {
				if (verify(new Uint8Array(req.response))) {
					nOK++;
					if (nOK === NUM) {
						document.write("dltest ok");
					}
				}
			}
		};
		req.send();
	}
</script>
</body>
</html>
"""
)


def render(template: str, length: int, num: int) -> str:
    """Substitute every LENGTH and NUM placeholder with the given integers."""
    return template.replace(LENGTH_PLACEHOLDER, str(int(length))).replace(
        NUM_PLACEHOLDER, str(int(num))
    )


def upload_page(length: int, num: int) -> str:
    return render(UPLOAD_HTML, length, num)


def download_page(length: int, num: int) -> str:
    return render(DOWNLOAD_HTML, length, num)
