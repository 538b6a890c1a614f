"""
HTML email templates. Placeholders use {{name}} syntax and are filled with str.replace.
"""

_WRAPPER_OPEN = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{title}}</title>
</head>
<body style="margin: 0; padding: 0; background-color: #050505; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color: #050505;">
    <tr>
      <td align="center" style="padding: 40px 20px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width: 600px; background-color: #141414; border-radius: 8px; border: 1px solid #30333A;">
          <tr>
            <td style="padding: 40px;">
"""

_WRAPPER_CLOSE = """
              <p style="margin: 40px 0 0 0; font-size: 14px; line-height: 1.5; color: #9095A1;">
                You're receiving this because you signed up for Signalist.
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""

WELCOME_EMAIL_TEMPLATE = (
    _WRAPPER_OPEN.replace("{{title}}", "Welcome to Signalist")
    + """              <h1 style="margin: 0 0 30px 0; font-size: 24px; font-weight: 600; color: #FDD458;">Welcome aboard, {{name}}</h1>
              {{intro}}
              <p style="margin: 0 0 15px 0; font-size: 16px; line-height: 1.6; color: #CCDADC;">Here's what you can do right now:</p>
              <ul style="margin: 0 0 30px 0; padding-left: 20px; color: #CCDADC; font-size: 16px; line-height: 1.6;">
                <li>Set up your watchlist to follow your favorite stocks.</li>
                <li>Check company insights and charts on every stock page.</li>
                <li>Get a daily news digest built from your watchlist.</li>
              </ul>
"""
    + _WRAPPER_CLOSE
)

NEWS_SUMMARY_EMAIL_TEMPLATE = (
    _WRAPPER_OPEN.replace("{{title}}", "Market News Summary")
    + """              <h1 style="margin: 0 0 10px 0; font-size: 24px; font-weight: 600; color: #FDD458;">Market News Summary</h1>
              <p style="margin: 0 0 30px 0; font-size: 14px; color: #9095A1;">{{date}}</p>
              <p style="margin: 0 0 20px 0; font-size: 16px; line-height: 1.6; color: #CCDADC;">Hi {{name}}, here is today's market news.</p>
              {{newsContent}}
"""
    + _WRAPPER_CLOSE
)


def render(template: str, **values: str) -> str:
    html = template
    for key, value in values.items():
        html = html.replace("{{" + key + "}}", value)
    return html
