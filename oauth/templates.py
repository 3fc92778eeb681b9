"""HTML pages rendered at the end of the HubSpot install flow.

Templates use str.format(), so literal CSS braces are doubled.
Dynamic values must be passed through html.escape() before formatting.
"""

_STYLE = """
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
               background: #F5F8FA;
               min-height: 100vh; display: flex; align-items: center; justify-content: center; margin: 0; }}
        .container {{ background: white; padding: 40px; border-radius: 16px; box-shadow: 0 4px 24px rgba(0,0,0,0.08);
                     width: 100%; max-width: 440px; border: 1px solid #DFE3EB; text-align: center; }}
        h1 {{ margin: 0 0 12px; color: #33475B; font-size: 24px; font-weight: 600; }}
        p {{ color: #516F90; margin: 0 0 20px; }}
        .icon {{ width: 56px; height: 56px; border-radius: 50%; margin: 0 auto 20px;
                display: flex; align-items: center; justify-content: center; color: white; font-size: 28px; }}
        .ok {{ background: #00BDA5; }}
        .fail {{ background: #F2545B; }}
        .error {{ background: #FDEDEE; color: #B3242A; padding: 12px; border-radius: 8px; margin-bottom: 20px;
                 border: 1px solid #F8C6C8; font-size: 14px; text-align: left; word-break: break-word; }}
        a.button {{ display: inline-block; padding: 12px 24px; background: #FF7A59; color: white;
                   border-radius: 8px; text-decoration: none; font-weight: 600; }}
        a.button:hover {{ background: #E66E50; }}
"""

SUCCESS_PAGE = """
<!DOCTYPE html>
<html>
<head>
    <title>Authorization Successful - HubSpot MCP</title>
    <style>""" + _STYLE + """    </style>
</head>
<body>
    <div class="container">
        <div class="icon ok">&#10003;</div>
        <h1>Authorization Successful!</h1>
        <p>Your MCP Server is now connected to HubSpot.</p>
        <p>You can close this window and return to your MCP client.</p>
    </div>
</body>
</html>
"""

FAILURE_PAGE = """
<!DOCTYPE html>
<html>
<head>
    <title>Authorization Failed - HubSpot MCP</title>
    <style>""" + _STYLE + """    </style>
</head>
<body>
    <div class="container">
        <div class="icon fail">!</div>
        <h1>{title}</h1>
        <div class="error">{error}</div>
        <a class="button" href="/install">Try again</a>
    </div>
</body>
</html>
"""
