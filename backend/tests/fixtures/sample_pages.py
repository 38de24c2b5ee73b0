"""
Sample web pages for extractor / scraper tests.

Each constant is a complete page body as a site (or the scraping API) would
return it.
"""

# Organization JSON-LD wrapped in @graph, contact data in contactPoint.
JSONLD_MANUFACTURER_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Home | Kansai Precision Works</title>
  <meta name="keywords" content="CNC machining, precision parts, prototyping">
  <script type="application/ld+json">
  {
    "@context": "https://schema.org",
    "@graph": [
      {"@type": "WebSite", "name": "Kansai Precision Works Site"},
      {
        "@type": "Corporation",
        "name": "Kansai Precision Works",
        "description": "Kansai Precision Works manufactures precision machined parts for the automotive and robotics industries.",
        "foundingDate": "1987-04-01",
        "numberOfEmployees": {"@type": "QuantitativeValue", "value": 120},
        "contactPoint": {"@type": "ContactPoint", "email": "sales@kansai-precision.example.jp", "telephone": "+81-6-1234-5678"},
        "address": {"@type": "PostalAddress", "addressLocality": "Osaka", "addressCountry": "JP"}
      }
    ]
  }
  </script>
</head>
<body>
  <h1>Welcome</h1>
  <p>Our factory runs around the clock.</p>
</body>
</html>
"""

# No structured data: everything comes from meta tags and body text.
PLAIN_CONSULTING_PAGE = """<html>
<head>
  <title>Northwind Advisory - Strategy Consulting</title>
  <meta name="description" content="Northwind Advisory helps mid-market companies plan their expansion into Asian markets.">
</head>
<body>
  <h1>Northwind Advisory</h1>
  <p>We specialize in market entry, partner search and regulatory advice.</p>
  <p>Our team of 35 consultants works from offices across Europe.</p>
  <p>Headquarters: 12 Harbour Street, London, United Kingdom</p>
  <p>Contact us at <a href="mailto:hello@northwind-advisory.example">hello@northwind-advisory.example</a>
     or call <a href="tel:+44 20 7946 0958">+44 20 7946 0958</a>.</p>
</body>
</html>
"""

# Nothing recognizable: no industry keywords, generic title, no contacts.
BARE_PAGE = """<html>
<head><title>Home</title></head>
<body><p>Hello there.</p></body>
</html>
"""

# Bank whose copy also mentions a shop: finance must win over retail.
BANK_PAGE = """<html>
<head><title>Harbor Savings Bank</title></head>
<body>
  <p>Harbor Savings Bank offers mortgage and loan products to families, and our online store sells branded gifts.</p>
</body>
</html>
"""

# Markdown as returned by the scraping API (no <p> structure).
MARKDOWN_PAGE = """# Blue Lantern Foods

Blue Lantern Foods is a family-run catering company serving restaurants and hotels across Bangkok since 2005.

- Menu planning
- Event catering

Email: orders@bluelantern.example
"""

# Japanese company profile; encode with cp932 for Shift_JIS tests.
JA_COMPANY_PAGE = """<html>
<head>
  <meta http-equiv="Content-Type" content="text/html; charset=Shift_JIS">
  <title>株式会社サクラ物流｜会社概要</title>
</head>
<body>
  <h1>株式会社サクラ物流</h1>
  <p>株式会社サクラ物流は、お客様のビジネスを支えるパートナーとして、東京を拠点に国内外の配送と倉庫管理を行う物流会社です。創業以来、迅速で確実なサービスを提供しています。</p>
  <p>所在地：東京都港区芝公園1-2-3</p>
  <p>電話：03-1234-5678</p>
  <p>従業員数：45名</p>
</body>
</html>
"""

CONTACT_PAGE = """<html>
<head><title>Contact | Example Co</title></head>
<body>
  <p>Write to <a href="mailto:info@example-co.example">info@example-co.example</a></p>
  <p>Phone: <a href="tel:+1-415-555-0142">+1-415-555-0142</a></p>
</body>
</html>
"""

ABOUT_PAGE = """<html>
<head><title>About | Example Co</title></head>
<body>
  <p>Example Co designs accessible scheduling software for small clinics and independent practitioners.</p>
</body>
</html>
"""

# Landing page with nothing usable for description or contacts.
THIN_LANDING_PAGE = """<html>
<head><title>Example Co</title></head>
<body><h1>Example Co</h1><p>Coming soon.</p></body>
</html>
"""
